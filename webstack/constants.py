"""
WebStack Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Project files (relative to the project directory)
DEFAULT_SETTINGS_FILE = "webstack.yml"
DEFAULT_INVENTORY_FILE = "inventory.yml"
DEFAULT_PLAYBOOK_FILE = "web-stack.yml"
DEFAULT_VAULT_FILE = "group_vars/all/vault.yml"
DEFAULT_LOG_DIR = "logs"
STATE_DIR = ".webstack"
STATE_FILE = "state.yml"
RENDERED_DIR = "rendered"

# Environment
VAULT_PASSWORD_FILE_ENV = "WEBSTACK_VAULT_PASSWORD_FILE"

# Remote layout
DEFAULT_TARGET_GROUP = "webservers"
DEFAULT_STACK_DIR = "/opt/web-stack"
DEFAULT_SERVICE_NAME = "web-stack"
COMPOSE_FILE_NAME = "docker-compose.yml"
INFO_PORTS = [80, 443, 8080]

# Execution
DEFAULT_TIMEOUT = 1800
STATUS_TIMEOUT = 60

# Phases in their fixed intra-host order
PHASE_ORDER = ["docker", "compose", "traefik", "nginx"]
CONFIG_STEP = "config"

# Ansible extra-var names for each phase flag
PHASE_VARS = {
    "docker": "install_docker",
    "compose": "install_docker_compose",
    "traefik": "install_traefik",
    "nginx": "install_nginx",
}

ANSIBLE_BECOME_METHOD = "sudo"

# Exit codes
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_DEGRADED = 2
EXIT_FAILED = 3
EXIT_INTERRUPTED = 130

# Tool names (pre-flight)
REQUIRED_TOOLS = [
    "ansible-playbook",
    "ansible",
]
OPTIONAL_TOOLS = [
    "docker",
]

# Log configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# File permissions
SECRET_FILE_PERMISSIONS = 0o600

# Header defaults
TRAEFIK_SERVER_HEADER = "Traefik"
HSTS_VALUE = "max-age=31536000; includeSubDomains"
NGINX_SERVER_HEADER = "nginx/1.24.0"
NGINX_POWERED_BY = "Nginx"
NGINX_SERVED_BY = "nginx"
CUSTOM_SERVER_HEADER = "Apache/2.4.41"
CUSTOM_POWERED_BY = "PHP/8.1.0"
CUSTOM_FRAMEWORK = "Laravel/9.0"

# Override option -> header name
HEADER_OVERRIDE_KEYS = {
    "custom_server_header": "Server",
    "custom_powered_by": "X-Powered-By",
    "custom_framework": "X-Framework",
    "custom_served_by": "X-Served-By",
}

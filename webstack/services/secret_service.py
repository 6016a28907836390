"""Vault secret store: existence checks and vault password handling."""

import getpass
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from webstack.constants import SECRET_FILE_PERMISSIONS
from webstack.core.config_loader import WebStackSettings
from webstack.exceptions import SecretStoreMissingError


class VaultSecretStore:
    """
    Supplies deployment secrets to Ansible without decrypting them.

    The vault file must exist. Its password comes from the configured
    password file, or is asked once and held in a private temporary file
    for the life of the command.
    """

    def __init__(
        self,
        settings: WebStackSettings,
        prompt: Callable[[str], str] = getpass.getpass,
    ):
        self.settings = settings
        self.prompt = prompt
        self._temp_password_file: Optional[Path] = None

    def ensure_available(self) -> None:
        """
        Check the vault and any configured password file exist.

        Raises:
            SecretStoreMissingError: If either is missing
        """
        vault_path = self.settings.vault_path
        if not vault_path.exists():
            raise SecretStoreMissingError(
                f"Vault file not found: {vault_path}",
                context=f"Run: ansible-vault create {vault_path}",
            )

        password_path = self.settings.vault_password_path
        if password_path and not password_path.exists():
            raise SecretStoreMissingError(
                f"Vault password file not found: {password_path}",
                context="Check vault_password_file in webstack.yml or WEBSTACK_VAULT_PASSWORD_FILE",
            )

    def password_file(self) -> Path:
        """Path of a file holding the vault password, prompting if needed."""
        configured = self.settings.vault_password_path
        if configured:
            return configured

        if self._temp_password_file is None:
            password = self.prompt("Vault password: ")
            if not password:
                raise SecretStoreMissingError("No vault password given")

            fd, path = tempfile.mkstemp(prefix="webstack-vault-")
            os.chmod(path, SECRET_FILE_PERMISSIONS)
            with os.fdopen(fd, "w") as handle:
                handle.write(password)
            self._temp_password_file = Path(path)

        return self._temp_password_file

    def ansible_args(self) -> List[str]:
        """Vault arguments for ansible and ansible-playbook."""
        return ["--vault-password-file", str(self.password_file())]

    def cleanup(self) -> None:
        """Delete the temporary password file, if one was written."""
        if self._temp_password_file is not None:
            self._temp_password_file.unlink(missing_ok=True)
            self._temp_password_file = None

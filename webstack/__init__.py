"""WebStack - Docker + Traefik + Nginx fleet deployment"""

__version__ = "1.0.0"

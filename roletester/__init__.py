"""roletester - Ansible role testing against container targets."""

__version__ = "0.1.0"

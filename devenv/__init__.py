"""
Containerized Development Environment Manager.

Provisions, manages and backs up a single long-lived development container
(multi-language toolchain, web editor, AI coding assistant) on a developer
workstation by driving Docker and Docker Compose.
"""

__version__ = "0.1.0"

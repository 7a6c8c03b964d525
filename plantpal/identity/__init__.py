"""
Identity Module for PlantPal

Account identity and credentials:
- Password hashing (bcrypt)
- Identity resolution for local and external logins
- GitHub OAuth client
"""

from plantpal.identity.passwords import hash_password, verify_password
from plantpal.identity.resolver import IdentityResolver, Resolution
from plantpal.identity.github import GitHubOAuthClient, GitHubProfile, mask_secret

__all__ = [
    # Passwords
    "hash_password",
    "verify_password",
    # Resolution
    "IdentityResolver",
    "Resolution",
    # GitHub
    "GitHubOAuthClient",
    "GitHubProfile",
    "mask_secret",
]

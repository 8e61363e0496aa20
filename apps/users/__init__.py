"""Users app package.

Defines the custom user model with the admin, staff and external roles,
registration and JWT login endpoints, and the permission classes the other
apps use. Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL
throughout the project.
"""

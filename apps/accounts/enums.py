from django.db import models


class StaffRole(models.TextChoices):
    """
    Role supplied by the identity provider and trusted by the job lifecycle.
    """

    ADMIN = "admin", "Admin"
    WORKER = "worker", "Worker"

"""
Signal receivers for the credits app.

Connected in CreditsConfig.ready().
"""

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from credits.services import SignupBonusService


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def grant_signup_bonus(sender, instance, created, raw=False, **kwargs):
    """Give new freelancers their signup credits."""
    if not created or raw:
        return
    SignupBonusService.grant(instance)

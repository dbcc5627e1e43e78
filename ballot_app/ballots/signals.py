from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from ballots.catalog import invalidate_catalog_cache
from ballots.models import Candidate, Position


@receiver(post_save, sender=Position)
@receiver(post_delete, sender=Position)
@receiver(post_save, sender=Candidate)
@receiver(post_delete, sender=Candidate)
def _invalidate_catalog_on_change(sender, **kwargs) -> None:
    invalidate_catalog_cache()

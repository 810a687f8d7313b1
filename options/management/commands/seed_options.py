from django.core.management.base import BaseCommand

from options.defaults import OPTION_DEFAULTS
from options.models import Option


class Command(BaseCommand):
    help = "Insert default runtime options that are missing (existing values are kept)."

    def handle(self, *args, **options):
        created_count = 0
        for name, value in OPTION_DEFAULTS.items():
            if value is None:
                continue
            _, created = Option.objects.get_or_create(name=name, defaults={"value": str(value)})
            if created:
                created_count += 1
                self.stdout.write(f"  + {name}={value}")
        self.stdout.write(self.style.SUCCESS(f"Options inserted/verified ({created_count} new)"))

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = "Change a user's role (participant / organizer / admin)"

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("role", choices=[key for key, _ in User.ROLE_CHOICES])

    def handle(self, *args, **options):
        username = options["username"]
        try:
            user = User.objects.get(username=username)
        except User.DoesNotExist:
            raise CommandError(f"User {username} not found")

        user.role = options["role"]
        user.save(update_fields=["role"])
        self.stdout.write(self.style.SUCCESS(f"Promoted {user.username} to {user.role}"))

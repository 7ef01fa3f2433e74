from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from core.exceptions import DomainError
from events import datetime_utils
from events.models import Event, MerchandiseVariant
from events.services import RegistrationService

User = get_user_model()


class Command(BaseCommand):
    help = "Seeds the database with sample users, events and registrations"

    def handle(self, *args, **options):
        self.stdout.write("Seeding data...")
        now = datetime_utils.now()

        # 1. Ensure Users
        admin = self._user("admin", role=User.ROLE_ADMIN, password="admin")
        organizer = self._user("organizer", role=User.ROLE_ORGANIZER)
        alice = self._user("alice", participant_type=User.TYPE_IIIT)
        bob = self._user("bob", participant_type=User.TYPE_NON_IIIT)

        # 2. Create Events
        events_data = [
            {
                "title": "AI Revolution Summit",
                "description": "A deep dive into large language models and the future of generative AI.",
                "start_time": now + timedelta(days=5),
                "end_time": now + timedelta(days=5, hours=4),
                "venue": "Innovation Hub, Hall A",
                "category": "technical",
                "capacity": 100,
            },
            {
                "title": "Hackathon: Build for Good",
                "description": "48-hour coding marathon to solve social issues.",
                "start_time": now + timedelta(days=12),
                "end_time": now + timedelta(days=14),
                "venue": "Main Auditorium",
                "event_type": Event.TYPE_COMPETITION,
                "participant_type": Event.PARTICIPATION_TEAM,
                "allow_teams": True,
                "min_team_size": 2,
                "max_team_size": 4,
                "capacity": 40,
            },
            {
                "title": "Photography Workshop",
                "description": "Hands-on session on composition and lighting.",
                "start_time": now + timedelta(days=2),
                "end_time": now + timedelta(days=2, hours=3),
                "venue": "Studio 2",
                "event_type": Event.TYPE_WORKSHOP,
                "eligibility": Event.ELIGIBILITY_IIIT,
                "registration_fee": 150,
                "capacity": 25,
            },
            {
                "title": "Club Hoodie Drop",
                "description": "Limited run club hoodies.",
                "start_time": now + timedelta(days=20),
                "end_time": now + timedelta(days=20, hours=2),
                "event_type": Event.TYPE_MERCHANDISE,
                "registration_fee": 800,
                "capacity": 200,
                "merchandise_item_name": "Hoodie",
                "purchase_limit": 2,
            },
        ]

        events = []
        for data in events_data:
            evt, created = Event.objects.get_or_create(
                title=data["title"],
                defaults={
                    **data,
                    "organizer": organizer,
                    "organizer_name": organizer.display_name,
                    "status": Event.STATUS_APPROVED,
                    "lifecycle_status": Event.LIFECYCLE_PUBLISHED,
                },
            )
            if created:
                self.stdout.write(f"Created Event: {evt.title}")
                if evt.is_merchandise:
                    for size in ("S", "M", "L"):
                        MerchandiseVariant.objects.create(
                            event=evt, sku=f"HOODIE-{size}", size=size, color="Black", stock=10, price=800
                        )
            events.append(evt)

        # 3. Register participants through the engine so counters stay right
        service = RegistrationService()
        for user in (alice, bob):
            for evt in events[:1]:
                try:
                    service.register(user, {"event_id": evt.id})
                except DomainError as e:
                    self.stdout.write(f"  Skipped {user.username} -> {evt.title}: {e}")

        self.stdout.write(self.style.SUCCESS(f"Seeding Complete! admin={admin.username}"))

    def _user(self, username, role=User.ROLE_PARTICIPANT, participant_type=None, password="password"):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                "email": f"{username}@example.com",
                "role": role,
                "participant_type": participant_type,
            },
        )
        if created:
            user.set_password(password)
            user.save()
        return user

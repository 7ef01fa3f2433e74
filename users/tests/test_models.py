from django.test import TestCase

from users.models import User
from users.serializers import UserSummarySerializer


class UserModelTests(TestCase):
    def test_email_is_lowercased(self):
        user = User.objects.create_user(username="Alice", email="  Alice@Example.COM ", password="pass1234")
        self.assertEqual(user.email, "alice@example.com")

    def test_roles(self):
        admin = User.objects.create_user(username="a", email="a@example.com", role=User.ROLE_ADMIN)
        root = User.objects.create_superuser(username="root", email="root@example.com", password="pass1234")
        organizer = User.objects.create_user(username="o", email="o@example.com", role=User.ROLE_ORGANIZER)
        participant = User.objects.create_user(username="p", email="p@example.com")

        self.assertTrue(admin.is_admin)
        self.assertTrue(root.is_admin)
        self.assertTrue(organizer.is_organizer)
        self.assertTrue(participant.is_participant)
        self.assertFalse(participant.is_admin)

    def test_display_name_falls_back_to_username(self):
        user = User.objects.create_user(username="bob", email="bob@example.com")
        self.assertEqual(user.display_name, "bob")
        user.first_name, user.last_name = "Bob", "Ross"
        self.assertEqual(user.display_name, "Bob Ross")

    def test_summary_serializer(self):
        user = User.objects.create_user(
            username="carol", email="carol@example.com", participant_type=User.TYPE_NON_IIIT
        )
        data = UserSummarySerializer(user).data
        self.assertEqual(data["name"], "carol")
        self.assertEqual(data["participant_type"], "non_iiit")
        self.assertNotIn("password", data)

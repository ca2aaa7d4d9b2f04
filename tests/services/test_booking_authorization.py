import pytest

from probook.core.actor import Actor
from probook.core.exceptions import UnauthorizedAction
from probook.repositories.profile_repository import ProviderRepository
from probook.services.booking_authorization import AuthorizationGuard
from tests.factories import create_booking, create_provider, new_id


@pytest.fixture
def guard(db):
    return AuthorizationGuard(ProviderRepository(db))


@pytest.fixture
def provider(db):
    return create_provider(db)


@pytest.fixture
def booking(db, provider):
    return create_booking(db, provider, "client-1")


class TestProviderActions:
    def test_assigned_provider_allowed(self, guard, provider, booking):
        guard.authorize_provider_action(Actor.provider(provider.user_id), booking, "accept")

    def test_other_provider_rejected(self, db, guard, booking):
        other = create_provider(db)
        with pytest.raises(UnauthorizedAction, match="another provider"):
            guard.authorize_provider_action(Actor.provider(other.user_id), booking, "accept")

    def test_provider_without_profile_rejected(self, guard, booking):
        with pytest.raises(UnauthorizedAction, match="profile not found"):
            guard.authorize_provider_action(Actor.provider(new_id()), booking, "accept")

    @pytest.mark.parametrize("actor", [Actor.client("client-1"), Actor.system()])
    def test_non_provider_roles_rejected(self, guard, booking, actor):
        with pytest.raises(UnauthorizedAction):
            guard.authorize_provider_action(actor, booking, "complete")

    def test_admin_allowed(self, guard, booking):
        guard.authorize_provider_action(Actor.admin("admin-1"), booking, "complete")


class TestClientActions:
    def test_owner_allowed(self, guard, booking):
        guard.authorize_client_action(Actor.client("client-1"), booking)

    def test_other_client_rejected(self, guard, booking):
        with pytest.raises(UnauthorizedAction, match="another client"):
            guard.authorize_client_action(Actor.client("client-2"), booking)

    def test_provider_cannot_cancel(self, guard, provider, booking):
        with pytest.raises(UnauthorizedAction):
            guard.authorize_client_action(Actor.provider(provider.user_id), booking)


class TestRoleChecks:
    def test_create_requires_client(self, guard):
        guard.authorize_create(Actor.client("client-1"))
        with pytest.raises(UnauthorizedAction):
            guard.authorize_create(Actor.admin("admin-1"))

    def test_payment_confirmation_roles(self, guard):
        guard.authorize_payment_confirmation(Actor.system())
        guard.authorize_payment_confirmation(Actor.admin("admin-1"))
        with pytest.raises(UnauthorizedAction):
            guard.authorize_payment_confirmation(Actor.client("client-1"))

    def test_admin_only(self, guard):
        guard.authorize_admin(Actor.admin("admin-1"), "force_status")
        with pytest.raises(UnauthorizedAction, match="admin role required"):
            guard.authorize_admin(Actor.provider("p-1"), "force_status")

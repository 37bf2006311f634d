import pytest
from sqlmodel import Session

from onboarding.core.errors import AuthorizationError
from onboarding.models import Profile, Role
from onboarding.services import applications, authorization
from tests.utils.application import (
    application_under_review,
    complete_form,
    create_profile,
)


class TestRoleLookup:
    def test_candidate_role(self, session: Session, candidate: Profile) -> None:
        assert authorization.get_role(session, candidate.id) is Role.CANDIDATE
        assert authorization.is_admin(session, candidate.id) is False

    def test_admin_role(self, session: Session, admin: Profile) -> None:
        assert authorization.get_role(session, admin.id) is Role.ADMIN
        assert authorization.is_admin(session, admin.id) is True

    def test_inactive_admin_has_no_role(self, session: Session) -> None:
        inactive = create_profile(session, role=Role.ADMIN, is_active=False)
        assert authorization.get_role(session, inactive.id) is None
        assert authorization.is_admin(session, inactive.id) is False

    def test_missing_actor(self, session: Session) -> None:
        assert authorization.get_role(session, None) is None
        assert authorization.is_admin(session, None) is False

    def test_admin_check_does_not_consult_read_policy(
        self, session: Session, admin: Profile, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(*args: object, **kwargs: object) -> bool:
            raise AssertionError("is_admin must not call the read/write policy")

        monkeypatch.setattr(authorization, "can_read", _boom)
        monkeypatch.setattr(authorization, "can_write", _boom)
        assert authorization.is_admin(session, admin.id) is True


class TestReadWrite:
    def test_owner_and_admin_can_read(
        self, session: Session, candidate: Profile, admin: Profile
    ) -> None:
        assert authorization.can_read(session, candidate.id, candidate.id) is True
        assert authorization.can_read(session, admin.id, candidate.id) is True

    def test_other_candidate_cannot_read(
        self, session: Session, candidate: Profile, other_candidate: Profile
    ) -> None:
        assert authorization.can_read(session, other_candidate.id, candidate.id) is False
        with pytest.raises(AuthorizationError):
            authorization.require_read(session, other_candidate.id, candidate.id)

    def test_owner_can_write_open_application(
        self, session: Session, candidate: Profile
    ) -> None:
        draft = applications.create_draft(session, owner_id=candidate.id)
        assert authorization.can_write(session, candidate.id, draft) is True

        applications.update_draft(
            session,
            application_id=draft.id,
            actor_id=candidate.id,
            form_patch=complete_form(),
        )
        submitted = applications.submit(
            session, application_id=draft.id, actor_id=candidate.id
        )
        assert authorization.can_write(session, candidate.id, submitted) is True

    def test_nobody_writes_form_under_review(
        self, session: Session, candidate: Profile, admin: Profile
    ) -> None:
        application = application_under_review(session, owner=candidate, admin=admin)
        assert authorization.can_write(session, candidate.id, application) is False
        assert authorization.can_write(session, admin.id, application) is False

    def test_admin_does_not_edit_candidate_form(
        self, session: Session, candidate: Profile, admin: Profile
    ) -> None:
        draft = applications.create_draft(session, owner_id=candidate.id)
        assert authorization.can_write(session, admin.id, draft) is False

    def test_require_admin_names_the_action(
        self, session: Session, candidate: Profile
    ) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            authorization.require_admin(session, candidate.id, action="approve applications")
        assert "approve applications" in exc_info.value.message
        assert exc_info.value.detail["required_role"] == "admin"

"""Unit tests for the service helpers behind the account endpoints."""
import enum
from datetime import datetime, timedelta, timezone

import pytest

from app.models.app_setting import AppSetting
from app.models.pending_registration import PendingRegistration
from app.models.user import UserRole
from app.schemas.auth import (
    AdminRegistration,
    CompanyRegistration,
    RecruiterRegistration,
    is_personal_email,
    is_valid_email,
    is_valid_phone,
    user_to_response,
)
from app.services import app_settings, auth
from app.services.audit_log import _sanitize_meta
from app.services.errors import ValidationError
from app.services.pending_cleanup import purge_expired_pending_registrations
from app.services.registration import build_registration

from conftest import company_payload, recruiter_payload


class TestCodesAndTokens:
    def test_otp_keeps_leading_zeros(self, monkeypatch):
        monkeypatch.setattr(auth.secrets, "randbelow", lambda n: 42)
        assert auth.generate_otp() == "000042"

    def test_otp_is_six_digits(self):
        for _ in range(20):
            code = auth.generate_otp()
            assert len(code) == 6 and code.isdigit()

    def test_otp_hash_verifies_only_the_right_code(self):
        hashed = auth.hash_otp("123456")
        assert hashed != "123456"
        assert auth.verify_otp_hash("123456", hashed)
        assert not auth.verify_otp_hash("123457", hashed)

    def test_reset_token_and_digest(self):
        token = auth.generate_reset_token()
        assert len(token) == 64
        digest = auth.hash_reset_token(token)
        assert len(digest) == 64
        assert digest != token
        assert auth.hash_reset_token(token) == digest

    def test_session_token_round_trip(self):
        token = auth.create_access_token(7, "carl@acme-corp.com", UserRole.COMPANY)
        payload, error = auth.decode_token_with_error(token)
        assert error is None
        assert payload["sub"] == "7"
        assert payload["role"] == "COMPANY"
        exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        assert timedelta(days=6, hours=23) < exp - datetime.now(timezone.utc) <= timedelta(days=7)

    def test_tampered_session_token(self):
        token = auth.create_access_token(7, "carl@acme-corp.com", UserRole.COMPANY)
        payload, error = auth.decode_token_with_error(token[:-2] + "xx")
        assert payload is None
        assert error

    def test_verify_password_tolerates_garbage_hash(self):
        assert auth.verify_password("anything", "not-a-bcrypt-hash") is False


class TestBuildRegistration:
    def test_company_member(self):
        reg = build_registration(company_payload())
        assert isinstance(reg, CompanyRegistration)
        assert reg.company_size == "51-200"

    def test_recruiter_member_without_firm(self):
        payload = recruiter_payload()
        del payload["recruitmentFirmName"]
        reg = build_registration(payload)
        assert isinstance(reg, RecruiterRegistration)
        assert reg.recruitment_firm_name is None

    def test_admin_member_ignores_company_fields(self):
        reg = build_registration(company_payload(role="ADMIN", email="ops@sourcingscreen.com"))
        assert isinstance(reg, AdminRegistration)
        assert not hasattr(reg, "company_name")

    def test_fields_are_trimmed_and_email_lowered(self):
        reg = build_registration(recruiter_payload(name="  Rita  ", email=" RITA@TalentFirm.io"))
        assert reg.name == "Rita"
        assert reg.email == "rita@talentfirm.io"

    def test_bad_email_is_checked_last(self):
        with pytest.raises(ValidationError) as exc:
            build_registration(recruiter_payload(email="rita-at-talentfirm"))
        assert exc.value.message == "Invalid email format"

        # Role check comes first
        with pytest.raises(ValidationError) as exc:
            build_registration(recruiter_payload(email="rita-at-talentfirm", role="GUEST"))
        assert exc.value.message == "Invalid role"

    @pytest.mark.parametrize(
        "phone, ok",
        [
            ("+14155550123", True),
            ("+44 20 7123 4567", True),
            ("+1 (415) 555-0123", True),
            ("4155550123", False),
            ("+123456789", False),
            ("+1234567890123456", False),
            ("", False),
        ],
    )
    def test_phone_format(self, phone, ok):
        assert is_valid_phone(phone) is ok

    def test_personal_domains(self):
        assert is_personal_email("someone@Gmail.com")
        assert not is_personal_email("someone@acme-corp.com")

    @pytest.mark.parametrize(
        "email, ok",
        [
            ("rita@talentfirm.io", True),
            ("first.last+tag@acme-corp.com", True),
            ("rita@talent..io", False),
            (".rita@talentfirm.io", False),
            ("rita@talentfirm", False),
            ("rita@@talentfirm.io", False),
            ("rita talentfirm.io", False),
        ],
    )
    def test_email_syntax(self, email, ok):
        assert is_valid_email(email) is ok

    def test_empty_recruitment_firm_name_means_not_provided(self):
        reg = build_registration(recruiter_payload(recruitmentFirmName=""))
        assert isinstance(reg, RecruiterRegistration)
        assert reg.recruitment_firm_name is None


class TestUserResponse:
    def test_company_fields_only_for_companies(self, make_user):
        recruiter = make_user(
            email="rita@talentfirm.io",
            role=UserRole.RECRUITER,
            recruitment_firm_name="Talent Firm",
            company_name="should not leak",
        )
        body = user_to_response(recruiter)
        assert body["recruitmentFirmName"] == "Talent Firm"
        assert "companyName" not in body
        assert "companySize" not in body
        assert "designation" not in body


class TestPendingCleanup:
    def _pending(self, email, expires_at):
        return PendingRegistration(
            email=email,
            otp_hash="x",
            user_data={"email": email},
            expires_at=expires_at,
            verified=False,
            attempts=0,
        )

    def test_purge_removes_only_expired(self, db):
        now = datetime.now(timezone.utc)
        db.add(self._pending("old@acme-corp.com", now - timedelta(minutes=1)))
        db.add(self._pending("live@acme-corp.com", now + timedelta(minutes=5)))
        db.commit()

        assert purge_expired_pending_registrations(db, now=now) == 1
        remaining = [p.email for p in db.query(PendingRegistration).all()]
        assert remaining == ["live@acme-corp.com"]


class TestAppSettings:
    def test_defaults_without_rows(self, db):
        assert app_settings.get_setting(db, app_settings.JOB_NOTIFICATION_FREQUENCY) == 5
        assert app_settings.get_setting(db, app_settings.END_OF_DAY_TIME, default="09:00") == "09:00"

    def test_initialize_defaults_is_idempotent(self, db):
        assert app_settings.initialize_defaults(db) == 4
        assert app_settings.initialize_defaults(db) == 0
        assert db.query(AppSetting).count() == 4

    def test_update_then_read(self, db):
        app_settings.update_settings(db, {app_settings.NOTIFICATION_ENABLED: False})
        assert app_settings.get_setting(db, app_settings.NOTIFICATION_ENABLED) is False
        assert app_settings.get_all_settings(db)[app_settings.JOB_NOTIFICATION_FREQUENCY] == 5

    @pytest.mark.parametrize("value", [0, 51, True, "5", 2.5])
    def test_frequency_bounds(self, value):
        with pytest.raises(ValidationError):
            app_settings.validate_setting_value(app_settings.JOB_NOTIFICATION_FREQUENCY, value)

    def test_empty_update(self, db):
        with pytest.raises(ValidationError) as exc:
            app_settings.update_settings(db, {})
        assert exc.value.message == "Settings object is required"

    def test_unknown_key(self, db):
        with pytest.raises(ValidationError):
            app_settings.get_setting(db, "nope")


class TestAuditMeta:
    def test_meta_is_made_json_safe(self):
        class Colour(enum.Enum):
            RED = "red"

        when = datetime(2024, 1, 2, 3, 4, 5)
        meta = _sanitize_meta({"role": UserRole.RECRUITER, "at": when, "colour": Colour.RED, "n": (1, 2), 3: object})
        assert meta["role"] == "RECRUITER"
        assert meta["at"] == when.isoformat()
        assert meta["colour"] == "red"
        assert meta["n"] == [1, 2]
        assert isinstance(meta["3"], str)

from __future__ import annotations

import time

import pytest
from bson import ObjectId

from blulog.api.errors import (
    ApiError,
    AuthenticationError,
    AuthFailure,
    DuplicateResourceError,
    InvalidSubjectError,
    NotFoundError,
    RefreshRejectedError,
)
from blulog.auth.models import (
    AccountStatus,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    Role,
)
from blulog.auth.service import AuthService
from blulog.auth.tokens import TokenCodec, TokenKind
from blulog.core.security import build_signed_token, verify_password
from tests.fakes import InMemoryAccountStore, RecordingMailer, auth_config


def _build_service(**config_kwargs) -> tuple[AuthService, InMemoryAccountStore, RecordingMailer]:
    config = auth_config(**config_kwargs)
    repo = InMemoryAccountStore()
    mailer = RecordingMailer()
    service = AuthService(
        repo, TokenCodec(config), mailer, config, client_base_url="https://blulog.test/"
    )
    return service, repo, mailer


def _register_jane(service: AuthService) -> str:
    user = service.register(
        RegisterRequest(full_name="Jane Doe", email="JANE@x.com", password="secret1")
    )
    return user.id


def test_register_stores_normalized_regular_account() -> None:
    service, repo, _ = _build_service()

    user = service.register(
        RegisterRequest(full_name="Jane Doe", email="JANE@x.com", password="secret1")
    )
    stored = repo.find_by_id(user.id)

    assert user.email == "jane@x.com"
    assert stored is not None
    assert stored.email == "jane@x.com"
    assert stored.role == Role.USER
    assert stored.status == AccountStatus.ACTIVE
    assert stored.password_hash != "secret1"
    assert "secret1" not in stored.password_hash
    assert verify_password("secret1", stored.password_hash)


def test_register_projection_hides_hash_role_and_status() -> None:
    service, _, _ = _build_service()

    user = service.register(RegisterRequest(email="jane@x.com", password="secret1"))
    dumped = user.model_dump(by_alias=True)

    assert set(dumped) == {"id", "fullName", "email"}


def test_register_same_normalized_email_twice_is_duplicate() -> None:
    service, _, _ = _build_service()
    _register_jane(service)

    with pytest.raises(DuplicateResourceError) as exc:
        service.register(RegisterRequest(email="jane@X.COM", password="another1"))

    assert exc.value.status_code == 400
    assert exc.value.message == "Email is already in use"


def test_login_unknown_email_and_wrong_password_fail_identically() -> None:
    service, _, _ = _build_service()
    _register_jane(service)

    with pytest.raises(ApiError) as unknown:
        service.login(LoginRequest(email="nobody@x.com", password="whatever"))
    with pytest.raises(ApiError) as wrong:
        service.login(LoginRequest(email="jane@x.com", password="wrong"))

    assert unknown.value.status_code == wrong.value.status_code == 400
    assert unknown.value.detail == wrong.value.detail
    assert wrong.value.message == "Invalid email or password"


def test_login_issues_access_and_refresh_tokens() -> None:
    service, _, _ = _build_service()
    account_id = _register_jane(service)

    result = service.login(LoginRequest(email="Jane@x.com", password="secret1"))

    assert result.user.id == account_id
    assert result.user.role == Role.USER
    assert result.access_token != result.refresh_token
    assert service.authenticate(result.access_token).id == account_id


def test_authenticate_reports_each_failure_kind() -> None:
    service, repo, _ = _build_service(access_ttl=60)
    account_id = _register_jane(service)
    account = repo.find_by_id(account_id)
    assert account is not None
    codec = TokenCodec(auth_config(access_ttl=60))

    with pytest.raises(AuthenticationError) as missing:
        service.authenticate("")
    with pytest.raises(AuthenticationError) as malformed:
        service.authenticate("not.a.token")
    expired_token = codec.issue_access(account, now=int(time.time()) - 120)
    with pytest.raises(AuthenticationError) as expired:
        service.authenticate(expired_token)

    assert missing.value.failure is AuthFailure.MISSING
    assert malformed.value.failure is AuthFailure.MALFORMED
    assert expired.value.failure is AuthFailure.EXPIRED
    assert {missing.value.status_code, malformed.value.status_code, expired.value.status_code} == {401}
    assert len({missing.value.message, malformed.value.message, expired.value.message}) == 3


def test_authenticate_rejects_bad_subject_and_deleted_account() -> None:
    service, repo, _ = _build_service()
    account_id = _register_jane(service)
    now = int(time.time())
    bad_subject = build_signed_token(
        {"iss": "blulog-test", "type": "access", "sub": 42, "iat": now, "exp": now + 60},
        "access-secret",
    )
    token = service.login(LoginRequest(email="jane@x.com", password="secret1")).access_token
    repo.delete_by_id(account_id)

    with pytest.raises(InvalidSubjectError) as subject_exc:
        service.authenticate(bad_subject)
    with pytest.raises(NotFoundError) as missing_exc:
        service.authenticate(token)

    assert subject_exc.value.status_code == 400
    assert missing_exc.value.status_code == 404


def test_refresh_does_not_rotate_refresh_token() -> None:
    service, _, _ = _build_service()
    account_id = _register_jane(service)
    session = service.login(LoginRequest(email="jane@x.com", password="secret1"))

    first = service.refresh(session.refresh_token)
    second = service.refresh(session.refresh_token)

    assert service.authenticate(first).id == account_id
    assert service.authenticate(second).id == account_id


def test_refresh_rejections() -> None:
    service, repo, _ = _build_service()
    account_id = _register_jane(service)
    session = service.login(LoginRequest(email="jane@x.com", password="secret1"))

    with pytest.raises(AuthenticationError) as missing:
        service.refresh(None)
    with pytest.raises(RefreshRejectedError) as invalid:
        service.refresh(session.access_token)
    repo.delete_by_id(account_id)
    with pytest.raises(RefreshRejectedError) as gone:
        service.refresh(session.refresh_token)

    assert missing.value.status_code == 401
    assert invalid.value.status_code == 403
    assert gone.value.status_code == 403
    assert invalid.value.message != gone.value.message


def test_forgot_password_unknown_email_is_not_found() -> None:
    service, _, mailer = _build_service()

    with pytest.raises(NotFoundError) as exc:
        service.forgot_password(ForgotPasswordRequest(email="nobody@x.com"))

    assert exc.value.status_code == 404
    assert mailer.sent == []


def test_forgot_password_survives_delivery_failure() -> None:
    service, _, mailer = _build_service()
    _register_jane(service)
    mailer.accept = False

    service.forgot_password(ForgotPasswordRequest(email="jane@x.com"))

    assert len(mailer.sent) == 1


def test_reset_flow_replaces_password() -> None:
    service, _, mailer = _build_service()
    _register_jane(service)

    service.forgot_password(ForgotPasswordRequest(email="jane@x.com"))
    email = mailer.sent[0]
    service.reset_password(ResetPasswordRequest(token=email.reset_token, new_password="brandnew"))

    assert email.to == "jane@x.com"
    assert "https://blulog.test/reset-password?token=" in email.html_body
    assert service.login(LoginRequest(email="jane@x.com", password="brandnew")).access_token
    with pytest.raises(ApiError):
        service.login(LoginRequest(email="jane@x.com", password="secret1"))


def test_reset_token_can_be_replayed_until_expiry() -> None:
    service, _, mailer = _build_service()
    _register_jane(service)
    service.forgot_password(ForgotPasswordRequest(email="jane@x.com"))
    token = mailer.sent[0].reset_token

    service.reset_password(ResetPasswordRequest(token=token, new_password="first-pass"))
    service.reset_password(ResetPasswordRequest(token=token, new_password="second-pass"))

    assert service.login(LoginRequest(email="jane@x.com", password="second-pass"))


def test_sessions_survive_password_reset() -> None:
    service, _, mailer = _build_service()
    account_id = _register_jane(service)
    session = service.login(LoginRequest(email="jane@x.com", password="secret1"))
    service.forgot_password(ForgotPasswordRequest(email="jane@x.com"))

    service.reset_password(
        ResetPasswordRequest(token=mailer.sent[0].reset_token, new_password="brandnew")
    )

    assert service.authenticate(session.access_token).id == account_id
    assert service.refresh(session.refresh_token)


def test_reset_password_rejects_bad_token_and_missing_account() -> None:
    service, repo, _ = _build_service()
    account_id = _register_jane(service)
    account = repo.find_by_id(account_id)
    assert account is not None
    codec = TokenCodec(auth_config())
    expired = codec.issue(TokenKind.RESET, account, now=int(time.time()) - 3600)
    orphan = codec.issue_reset(account.model_copy(update={"id": str(ObjectId())}))

    with pytest.raises(ApiError) as bad:
        service.reset_password(ResetPasswordRequest(token="garbage", new_password="brandnew"))
    with pytest.raises(ApiError) as old:
        service.reset_password(ResetPasswordRequest(token=expired, new_password="brandnew"))
    with pytest.raises(NotFoundError):
        service.reset_password(ResetPasswordRequest(token=orphan, new_password="brandnew"))

    assert bad.value.status_code == old.value.status_code == 400
    assert bad.value.message == "Invalid or expired token"


def test_bootstrap_admin_account_is_idempotent() -> None:
    service, repo, _ = _build_service(admin_email="admin@x.com", admin_password="admin123")

    service.bootstrap_admin_account()
    service.bootstrap_admin_account()

    admins = [account for account in repo.list_accounts() if account.role == Role.ADMIN]
    assert len(admins) == 1
    assert admins[0].email == "admin@x.com"

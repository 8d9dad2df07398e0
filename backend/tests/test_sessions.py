from datetime import timedelta

from retail_pos.services import session_service
from retail_pos.time_utils import utcnow


def test_token_is_stored_hashed(db_session, cashier_user):
    row, token = session_service.create_session(cashier_user.id)

    assert row.token_hash == session_service.hash_token(token)
    assert row.token_hash != token
    assert row.expires_at - row.created_at == session_service.SESSION_ABSOLUTE_TIMEOUT


def test_validate_refreshes_last_used(db_session, cashier_user):
    row, token = session_service.create_session(cashier_user.id)
    row.last_used_at = utcnow() - timedelta(minutes=30)
    db_session.commit()

    context = session_service.validate_session(token)

    assert context is not None
    assert context.user.id == cashier_user.id
    assert utcnow() - context.session.last_used_at < timedelta(minutes=1)


def test_idle_session_is_revoked(db_session, cashier_user):
    row, token = session_service.create_session(cashier_user.id)
    row.last_used_at = utcnow() - session_service.SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
    db_session.commit()

    assert session_service.validate_session(token) is None
    db_session.refresh(row)
    assert row.is_revoked
    assert row.revoked_reason == "Idle timeout"


def test_expired_session_is_rejected(db_session, cashier_user):
    row, token = session_service.create_session(cashier_user.id)
    row.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    assert session_service.validate_session(token) is None


def test_deactivated_user_loses_session(db_session, cashier_user):
    _, token = session_service.create_session(cashier_user.id)
    cashier_user.is_active = False
    db_session.commit()

    assert session_service.validate_session(token) is None


def test_revoke_session(db_session, cashier_user):
    _, token = session_service.create_session(cashier_user.id)

    assert session_service.revoke_session(token) is True
    assert session_service.revoke_session(token) is False
    assert session_service.validate_session(token) is None


def test_revoke_all_and_cleanup(db_session, cashier_user):
    first, _ = session_service.create_session(cashier_user.id)
    session_service.create_session(cashier_user.id)

    assert session_service.revoke_all_user_sessions(cashier_user.id) == 2

    first.created_at = utcnow() - session_service.REVOKED_RETENTION - timedelta(days=1)
    db_session.commit()

    assert session_service.cleanup_expired_sessions() == 1


def test_unknown_token(db_session):
    assert session_service.validate_session("not-a-token") is None
    assert session_service.validate_session(None) is None

import pytest

from meetbook.core import config
from meetbook.core.errors import ConflictError, NotFoundError, ValidationError
from meetbook.services import directory


def test_create_user_normalizes_fields(db) -> None:
    user = directory.create_user(db, '  alice ', ' Alice@Example.COM ')

    assert user.id is not None
    assert user.username == 'alice'
    assert user.email == 'alice@example.com'
    assert user.created_at is not None


def test_create_user_rejects_duplicate_email_case_insensitively(db) -> None:
    directory.create_user(db, 'alice', 'alice@example.com')

    with pytest.raises(ConflictError):
        directory.create_user(db, 'alice2', 'ALICE@example.com')


def test_create_user_rejects_duplicate_username(db) -> None:
    directory.create_user(db, 'alice', 'alice@example.com')

    with pytest.raises(ConflictError):
        directory.create_user(db, 'alice', 'other@example.com')


@pytest.mark.parametrize(('username', 'email'), [('   ', 'a@example.com'), ('alice', 'not-an-email'), ('alice', '@x')])
def test_create_user_rejects_invalid_input(db, username: str, email: str) -> None:
    with pytest.raises(ValidationError):
        directory.create_user(db, username, email)


def test_search_users_matches_username_or_email_case_insensitively(db, make_user) -> None:
    alice = make_user('alice', 'alice@wonder.land')
    bob = make_user('bob', 'bob@ALICE-corp.com')
    make_user('carol', 'carol@example.com')

    results = directory.search_users(db, 'ALI')

    assert [user.id for user in results] == [alice.id, bob.id]


def test_search_users_ignores_short_queries(db, make_user) -> None:
    make_user('alice')

    assert directory.search_users(db, ' a ') == []
    assert directory.search_users(db, '') == []


def test_search_users_caps_results(db, make_user, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'USER_SEARCH_LIMIT', 2)
    for index in range(5):
        make_user(f'user{index}')

    assert len(directory.search_users(db, 'user')) == 2


def test_search_users_treats_wildcards_literally(db, make_user) -> None:
    make_user('alice')
    percent = make_user('100%_sure', 'sure@example.com')

    assert [user.id for user in directory.search_users(db, '%_')] == [percent.id]


def test_create_calendar_requires_existing_user(db) -> None:
    with pytest.raises(NotFoundError):
        directory.create_calendar(db, 42, 'Work')


def test_create_calendar_rejects_blank_name(db, make_user) -> None:
    with pytest.raises(ValidationError):
        directory.create_calendar(db, make_user('alice').id, '  ')


def test_get_calendars_by_user_returns_only_owned_calendars(db, make_user) -> None:
    alice = make_user('alice')
    bob = make_user('bob')
    work = directory.create_calendar(db, alice.id, 'Work')
    home = directory.create_calendar(db, alice.id, 'Home')
    directory.create_calendar(db, bob.id, 'Other')

    assert [calendar.id for calendar in directory.get_calendars_by_user(db, alice.id)] == [work.id, home.id]
    assert directory.get_calendars_by_user(db, 999) == []


def test_get_calendar_missing_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        directory.get_calendar(db, 1)

# tests/crud/test_home_value.py

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from home_value_service.crud import home_value as crud_home_value
from home_value_service.crud import message as crud_message
from home_value_service.middleware.error_handler import DataStoreError
from tests.utils.home_value import create_message, create_random_home_value


def test_create_home_value_commits():
    db_session = MagicMock()

    obj = crud_home_value.create(
        db_session, owner_id="user_1", address="12 Elm St", images=["/uploads/a.png"]
    )

    db_session.add.assert_called_once_with(obj)
    db_session.commit.assert_called_once()
    db_session.refresh.assert_called_once_with(obj)
    assert obj.expert_id is None
    assert obj.images == ["/uploads/a.png"]


def test_claim_is_a_single_conditional_update():
    """The claim must never read the row before writing it."""
    db_session = MagicMock()
    query = db_session.query.return_value
    query.filter.return_value.update.return_value = 1

    assert crud_home_value.claim(db_session, id="hvr_1", expert_id="expert_1") is True

    query.filter.return_value.update.assert_called_once()
    values = query.filter.return_value.update.call_args.args[0]
    assert values["expert_id"] == "expert_1"
    assert values["validated"] is True
    query.filter.return_value.first.assert_not_called()
    db_session.commit.assert_called_once()


def test_claim_rolls_back_and_wraps_database_errors():
    db_session = MagicMock()
    db_session.query.return_value.filter.return_value.update.side_effect = OperationalError(
        "UPDATE", {}, Exception("db down")
    )

    with pytest.raises(DataStoreError):
        crud_home_value.claim(db_session, id="hvr_1", expert_id="expert_1")
    db_session.rollback.assert_called_once()


def test_claim_sets_expert_once(db):
    request = create_random_home_value(db)

    assert crud_home_value.claim(db, id=request.id, expert_id="expert_1") is True
    assert crud_home_value.claim(db, id=request.id, expert_id="expert_2") is False
    assert crud_home_value.claim(db, id=request.id, expert_id="expert_1") is False

    db.refresh(request)
    assert request.expert_id == "expert_1"
    assert request.validated is True


def test_claim_missing_request_matches_nothing(db):
    assert crud_home_value.claim(db, id="hvr_missing", expert_id="expert_1") is False


def test_expert_listing_shows_unclaimed_and_own(db):
    unclaimed = create_random_home_value(db, address="1 Oak Ave")
    mine = create_random_home_value(db, address="2 Oak Ave", expert_id="expert_1")
    create_random_home_value(db, address="3 Oak Ave", expert_id="expert_2")

    ids = {r.id for r in crud_home_value.get_multi_for_expert(db, expert_id="expert_1")}

    assert ids == {unclaimed.id, mine.id}


def test_owner_listing_newest_first(db):
    first = create_random_home_value(db, owner_id="user_1", address="1 Oak Ave")
    second = create_random_home_value(db, owner_id="user_1", address="2 Oak Ave")
    create_random_home_value(db, owner_id="user_2")

    result = crud_home_value.get_multi_by_owner(db, owner_id="user_1")

    assert [r.id for r in result] == [second.id, first.id]


def test_update_appends_images(db):
    request = crud_home_value.create(db, owner_id="user_1", address="12 Elm St", images=["/uploads/a.png"])

    updated = crud_home_value.update(
        db, db_obj=request, address="14 Elm St", new_images=["/uploads/b.png"]
    )

    assert updated.address == "14 Elm St"
    assert updated.images == ["/uploads/a.png", "/uploads/b.png"]


def test_remove_with_messages_deletes_whole_thread(db):
    request = create_random_home_value(db, expert_id="expert_1")
    other = create_random_home_value(db, address="99 Pine Rd")
    create_message(db, request.id, "user_1")
    create_message(db, request.id, "expert_1")
    kept = create_message(db, other.id, "user_1")
    request_id = request.id

    assert crud_home_value.remove_with_messages(db, id=request_id) is True

    assert crud_home_value.get(db, id=request_id) is None
    assert crud_message.get_thread(db, request_id=request_id) == []
    assert [m.id for m in crud_message.get_thread(db, request_id=other.id)] == [kept.id]


def test_remove_missing_request_deletes_nothing(db):
    request = create_random_home_value(db)
    create_message(db, request.id, "user_1")

    assert crud_home_value.remove_with_messages(db, id="hvr_missing") is False

    assert len(crud_message.get_thread(db, request_id=request.id)) == 1


def test_status_outside_workflow_is_rejected(db):
    request = create_random_home_value(db)

    request.status = "closed"
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

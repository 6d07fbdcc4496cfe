from datetime import date

import pytest

from study_diary import models
from study_diary.errors import NotFoundError


def test_sql_save_assigns_ids_and_round_trips(sql_store, make_log):
    first = sql_store.save(make_log(1, category=models.Category.DATABASE))
    second = sql_store.save(make_log(2))
    assert first.id is not None
    assert second.id > first.id

    fetched = sql_store.find_by_id(first.id)
    assert fetched.title == "Study log 1"
    assert fetched.category is models.Category.DATABASE
    assert fetched.understanding is models.Understanding.GOOD
    assert fetched.study_date == date(2024, 1, 1)
    assert fetched.created_at is not None


def test_sql_update_and_not_found(sql_store, make_log):
    saved = sql_store.save(make_log(1))
    saved.study_time = 5
    updated = sql_store.update(saved)
    assert updated.study_time == 5
    assert sql_store.find_by_id(saved.id).study_time == 5

    with pytest.raises(NotFoundError):
        sql_store.update(make_log(2))
    with pytest.raises(NotFoundError):
        sql_store.update(make_log(2, id=999))


def test_sql_filters_and_counts(sql_store, make_log):
    sql_store.save(make_log(1, category=models.Category.SPRING))
    sql_store.save(make_log(2))
    sql_store.save(make_log(3, category=models.Category.SPRING, study_date=date(2024, 1, 2)))

    assert sql_store.count() == 3
    assert len(sql_store.find_all()) == 3
    assert len(sql_store.find_by_category(models.Category.SPRING)) == 2
    assert len(sql_store.find_by_study_date(date(2024, 1, 2))) == 2


def test_sql_soft_delete_restore_and_delete(sql_store, make_log):
    a = sql_store.save(make_log(1))
    b = sql_store.save(make_log(2))

    assert sql_store.soft_delete_by_id(a.id) is True
    assert sql_store.soft_delete_by_id(a.id) is False
    assert [log.id for log in sql_store.find_all_active()] == [b.id]
    assert sql_store.find_by_id(a.id).deleted is True
    assert sql_store.find_by_id(a.id).deleted_at is not None

    assert sql_store.restore(a.id) is True
    assert sql_store.restore(a.id) is False
    assert sql_store.find_by_id(a.id).deleted_at is None

    assert sql_store.delete_by_id(b.id) is True
    assert sql_store.delete_by_id(b.id) is False
    assert sql_store.exists_by_id(a.id)
    assert not sql_store.exists_by_id(b.id)
    assert sql_store.delete_all() == 1
    assert sql_store.count() == 0


def test_sql_patch_keeps_soft_delete_flag(sql_store, make_log, clock):
    saved = sql_store.save(make_log(1))
    sql_store.soft_delete_by_id(saved.id)

    patched = sql_store.patch(saved.id, {"study_time": 7}, clock())
    assert patched.study_time == 7
    assert patched.deleted is True
    assert sql_store.find_by_id(saved.id).title == "Study log 1"
    with pytest.raises(NotFoundError):
        sql_store.patch(999, {"study_time": 7}, clock())

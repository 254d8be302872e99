from __future__ import annotations

import json
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.notifications.errors import PersistenceError
from app.notifications.models import NotificationStatus, ProgressCheckpoint
from app.notifications.resume_log import JsonFileResumeLog, PostgresResumeLog, TransactionalResumeLog


@pytest.mark.anyio
async def test_missing_file_loads_as_empty_mapping(tmp_path):
  log = JsonFileResumeLog(tmp_path / "queue.json")

  assert await log.load() == {}


@pytest.mark.anyio
async def test_save_then_load_restores_mapping(tmp_path):
  path = tmp_path / "state" / "queue.json"
  log = JsonFileResumeLog(path)

  await log.save({12: {3, 1, 2}, 4: set()})

  assert await JsonFileResumeLog(path).load() == {12: {1, 2, 3}, 4: set()}
  assert json.loads(path.read_text(encoding="utf-8")) == {"4": [], "12": [1, 2, 3]}


@pytest.mark.anyio
async def test_save_of_loaded_state_is_a_no_op(tmp_path):
  path = tmp_path / "queue.json"
  path.write_text('{"7":[5,6]}', encoding="utf-8")
  log = JsonFileResumeLog(path)

  await log.save(await log.load())

  assert await log.load() == {7: {5, 6}}


@pytest.mark.anyio
async def test_save_replaces_file_and_leaves_no_temp_files(tmp_path):
  path = tmp_path / "queue.json"
  log = JsonFileResumeLog(path)

  await log.save({1: {1}})
  await log.save({2: {2}})

  assert await log.load() == {2: {2}}
  assert os.listdir(tmp_path) == ["queue.json"]


@pytest.mark.anyio
async def test_failed_replace_keeps_previous_state(tmp_path, monkeypatch):
  path = tmp_path / "queue.json"
  log = JsonFileResumeLog(path)
  await log.save({1: {1}})

  def _fail_replace(src, dst):
    raise OSError("disk full")

  monkeypatch.setattr("app.notifications.resume_log.os.replace", _fail_replace)

  with pytest.raises(PersistenceError):
    await log.save({1: {1, 2}})

  assert json.loads(path.read_text(encoding="utf-8")) == {"1": [1]}
  assert os.listdir(tmp_path) == ["queue.json"]


@pytest.mark.anyio
async def test_corrupt_file_raises_persistence_error(tmp_path):
  path = tmp_path / "queue.json"
  path.write_text("{not json", encoding="utf-8")

  with pytest.raises(PersistenceError):
    await JsonFileResumeLog(path).load()


@pytest.mark.anyio
async def test_non_object_document_raises_persistence_error(tmp_path):
  path = tmp_path / "queue.json"
  path.write_text("[1, 2]", encoding="utf-8")

  with pytest.raises(PersistenceError):
    await JsonFileResumeLog(path).load()


@pytest.mark.anyio
@pytest.mark.parametrize("document", ['{"1": 5}', '{"1": "12"}', '{"abc": [1]}', '{"1": ["x"]}', '{"1": [null]}'])
async def test_malformed_entries_raise_persistence_error(tmp_path, document):
  path = tmp_path / "queue.json"
  path.write_text(document, encoding="utf-8")

  with pytest.raises(PersistenceError):
    await JsonFileResumeLog(path).load()


def test_only_postgres_backend_is_transactional(tmp_path):
  assert not isinstance(JsonFileResumeLog(tmp_path / "queue.json"), TransactionalResumeLog)
  assert isinstance(PostgresResumeLog(session_factory=None), TransactionalResumeLog)


def _async_context(value=None):
  context = MagicMock()
  context.__aenter__ = AsyncMock(return_value=value)
  context.__aexit__ = AsyncMock(return_value=False)
  return context


def _mock_session():
  session = MagicMock()
  session.execute = AsyncMock()
  session.begin.return_value = _async_context()
  return session


@pytest.mark.anyio
async def test_postgres_load_groups_claim_rows():
  session = _mock_session()
  result = MagicMock()
  result.all.return_value = [SimpleNamespace(notification_id=1, user_id=10), SimpleNamespace(notification_id=1, user_id=11), SimpleNamespace(notification_id=2, user_id=10)]
  session.execute.return_value = result
  log = PostgresResumeLog(MagicMock(return_value=_async_context(session)))

  assert await log.load() == {1: {10, 11}, 2: {10}}


@pytest.mark.anyio
async def test_postgres_checkpoint_writes_claims_and_progress_in_one_transaction():
  session = _mock_session()
  log = PostgresResumeLog(MagicMock(return_value=_async_context(session)))
  checkpoint = ProgressCheckpoint(notification_id=3, in_progress=100, in_queue=150, status=NotificationStatus.STARTED)

  await log.save_checkpoint({3: {7, 5}, 4: {1}}, checkpoint)

  session.begin.assert_called_once()
  assert session.execute.await_count == 3
  insert_rows = session.execute.await_args_list[1].args[1]
  assert insert_rows == [{"notification_id": 3, "user_id": 5}, {"notification_id": 3, "user_id": 7}]


@pytest.mark.anyio
async def test_postgres_checkpoint_of_drained_notification_only_deletes_and_updates():
  session = _mock_session()
  log = PostgresResumeLog(MagicMock(return_value=_async_context(session)))
  checkpoint = ProgressCheckpoint(notification_id=3, in_progress=250, in_queue=0, status=NotificationStatus.FINISHED)

  await log.save_checkpoint({}, checkpoint)

  assert session.execute.await_count == 2


@pytest.mark.anyio
async def test_postgres_errors_are_wrapped():
  session = _mock_session()
  session.execute.side_effect = SQLAlchemyError("connection lost")
  log = PostgresResumeLog(MagicMock(return_value=_async_context(session)))

  with pytest.raises(PersistenceError):
    await log.save({1: {1}})

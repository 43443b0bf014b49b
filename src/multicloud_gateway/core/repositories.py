"""Task persistence on top of a RelationalStore."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from .models import Task
from .protocols import LoggerProtocol, RelationalStore
from .settings import GatewaySettings
from .transactions import connection, transaction

SQL_FIND_ALL = "SELECT uuid, description, creationdate, priority FROM task"
SQL_FIND_BY_ID = (
    "SELECT uuid, description, creationdate, priority FROM task WHERE uuid = $1"
)
SQL_INSERT = (
    "INSERT INTO task(uuid, description, creationdate, priority) VALUES($1, $2, $3, $4)"
)
SQL_UPDATE = (
    "UPDATE task SET description = $2, creationdate = $3, priority = $4 WHERE uuid = $1"
)
SQL_DELETE = "DELETE FROM task WHERE uuid = $1"


class TaskRepository(ABC):
    """Data access object for Task rows."""

    @abstractmethod
    async def find_all(self) -> List[Task]:
        ...

    @abstractmethod
    async def find_by_id(self, task_id: UUID) -> Optional[Task]:
        ...

    @abstractmethod
    async def create(self, task: Task) -> None:
        ...

    @abstractmethod
    async def update(self, task: Task) -> None:
        """Replace the whole row identified by task.id."""
        ...

    @abstractmethod
    async def delete_by_id(self, task_id: UUID) -> None:
        ...


class SqlTaskRepository(TaskRepository):
    """
    One parameterized query per operation. Writes are expected to run in a
    transaction opened by the caller; the repository holds no transaction
    state.
    """

    def __init__(self, store: RelationalStore):
        self._store = store

    async def find_all(self) -> List[Task]:
        result = await self._store.query(SQL_FIND_ALL)
        return [self._row_to_task(row) for row in result.rows]

    async def find_by_id(self, task_id: UUID) -> Optional[Task]:
        result = await self._store.query(SQL_FIND_BY_ID, [str(task_id)])
        if not result.rows:
            return None
        return self._row_to_task(result.rows[0])

    async def create(self, task: Task) -> None:
        await self._store.query(
            SQL_INSERT, [str(task.id), task.description, task.created_at, task.priority]
        )

    async def update(self, task: Task) -> None:
        await self._store.query(
            SQL_UPDATE, [str(task.id), task.description, task.created_at, task.priority]
        )

    async def delete_by_id(self, task_id: UUID) -> None:
        await self._store.query(SQL_DELETE, [str(task_id)])

    @staticmethod
    def _row_to_task(row: Dict[str, Any]) -> Task:
        return Task(
            id=UUID(str(row["uuid"])),
            description=row["description"],
            created_at=row["creationdate"],
            priority=row["priority"],
        )


class SampleTaskService:
    """Sample business workflow exercising every repository operation."""

    def __init__(self, repository: TaskRepository, logger: LoggerProtocol):
        self._repository = repository
        self._logger = logger

    async def do_stuff(self) -> List[List[Task]]:
        """
        list -> create two -> list -> update one -> list -> find one ->
        delete both -> list.

        Returns:
            Every listing observed, in order
        """
        listings: List[List[Task]] = []

        self._logger.info("Load existing tasks...")
        listings.append(await self._load())

        self._logger.info("Create tasks...")
        task1 = Task(
            description="Buy new battery",
            created_at=datetime(2019, 4, 13, 11, 14, tzinfo=timezone.utc),
            priority=3,
        )
        task2 = Task(
            description="Bring laptop to repair",
            created_at=datetime(2019, 4, 13, 11, 15, tzinfo=timezone.utc),
            priority=1,
        )
        await self._repository.create(task1)
        await self._repository.create(task2)
        listings.append(await self._load())

        self._logger.info("Update a task...")
        task1.description = "Buy three batteries"
        task1.priority = 2
        await self._repository.update(task1)
        listings.append(await self._load())

        self._logger.info("Load first task...")
        task = await self._repository.find_by_id(task1.id)
        self._logger.info(f"First task: {task.model_dump_json() if task else None}")

        self._logger.info("Delete tasks...")
        await self._repository.delete_by_id(task1.id)
        await self._repository.delete_by_id(task2.id)
        listings.append(await self._load())

        return listings

    async def _load(self) -> List[Task]:
        tasks = await self._repository.find_all()
        self._logger.info(f"Tasks: {[t.model_dump(mode='json') for t in tasks]}")
        return tasks


async def run_sample_workflow(
    store: RelationalStore, settings: GatewaySettings, logger: LoggerProtocol
) -> List[List[Task]]:
    """Run SampleTaskService.do_stuff in one connection and one transaction."""
    service = SampleTaskService(SqlTaskRepository(store), logger)
    async with connection(store, settings):
        async with transaction(store):
            return await service.do_stuff()

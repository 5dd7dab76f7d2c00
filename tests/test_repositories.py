"""
SQLAlchemy repository tests against an in-memory SQLite database.

Exercises the SQL paths the in-memory fakes stand in for: upserts, joins,
ordering, cascading deletes and the signup transaction.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from tasknest.core.exceptions import SignupFailedError
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.models.task import Task, TaskStatus
from tasknest.models.task_assignment import TaskAssignment
from tasknest.models.user import User
from tasknest.repositories.base import TaskFilter
from tasknest.repositories.organization_repository import SQLAlchemyOrganizationRepository
from tasknest.repositories.task_repository import SQLAlchemyTaskRepository
from tasknest.repositories.user_repository import SQLAlchemyUserRepository

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


async def add_user(db, username):
    user = User(username=username, password_hash="hash")
    db.add(user)
    await db.flush()
    return user


async def add_org(db, name, owner, code):
    org = Organization(name=name, invite_code=code)
    db.add(org)
    await db.flush()
    db.add(OrganizationMember(organization_id=org.id, user_id=owner.id, role=OrgRole.owner))
    await db.flush()
    return org


async def add_task(db, org, creator, title, minutes, due_date=None, status=TaskStatus.TODO):
    task = Task(
        organization_id=org.id,
        creator_id=creator.id,
        title=title,
        description="",
        status=status,
        due_date=due_date,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        updated_at=BASE_TIME,
    )
    db.add(task)
    await db.flush()
    return task


async def count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

async def test_assign_upsert_ignores_existing_rows(db_session):
    alice = await add_user(db_session, "alice")
    bob = await add_user(db_session, "bob")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0001")
    task = await add_task(db_session, org, alice, "Review", 0)
    repo = SQLAlchemyTaskRepository(db_session)

    await repo.assign(task.id, [alice.id, bob.id])
    await repo.assign(task.id, [bob.id])

    assert await count(db_session, TaskAssignment) == 2
    loaded = await repo.find_by_id(task.id)
    assert {a.user.username for a in loaded.assignments} == {"alice", "bob"}
    assert loaded.creator.username == "alice"
    assert loaded.organization.name == "Acme"


async def test_unassign_and_is_assigned(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0002")
    task = await add_task(db_session, org, alice, "Review", 0)
    repo = SQLAlchemyTaskRepository(db_session)

    await repo.assign(task.id, [alice.id])
    assert await repo.is_assigned(task.id, alice.id)

    await repo.unassign(task.id, [alice.id])
    await repo.unassign(task.id, [alice.id])
    assert not await repo.is_assigned(task.id, alice.id)


async def test_list_orders_by_due_date_with_nulls_last(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0003")
    await add_task(db_session, org, alice, "undated-old", 0)
    await add_task(db_session, org, alice, "later", 1, due_date=BASE_TIME + timedelta(days=3))
    await add_task(db_session, org, alice, "sooner", 2, due_date=BASE_TIME + timedelta(days=1))
    await add_task(db_session, org, alice, "undated-new", 3)
    repo = SQLAlchemyTaskRepository(db_session)

    tasks, total = await repo.list_tasks(
        TaskFilter(organization_ids=[org.id], sort_by_due_date=True)
    )
    assert total == 4
    assert [t.title for t in tasks] == ["sooner", "later", "undated-new", "undated-old"]

    tasks, _ = await repo.list_tasks(TaskFilter(organization_ids=[org.id]))
    assert [t.title for t in tasks] == ["undated-new", "sooner", "later", "undated-old"]


async def test_list_paginates_but_counts_everything(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0004")
    for i in range(5):
        await add_task(db_session, org, alice, f"t{i}", i)
    repo = SQLAlchemyTaskRepository(db_session)

    tasks, total = await repo.list_tasks(
        TaskFilter(organization_ids=[org.id], page=2, page_size=2)
    )

    assert total == 5
    assert [t.title for t in tasks] == ["t2", "t1"]
    assert tasks[0].creator.username == "alice"


async def test_list_filters(db_session):
    alice = await add_user(db_session, "alice")
    bob = await add_user(db_session, "bob")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0005")
    other = await add_org(db_session, "Other", bob, "aaaa-0000-0006")
    mine = await add_task(db_session, org, alice, "mine", 0, status=TaskStatus.DONE)
    await add_task(db_session, org, alice, "unassigned", 1)
    await add_task(db_session, other, bob, "elsewhere", 2)
    repo = SQLAlchemyTaskRepository(db_session)
    await repo.assign(mine.id, [alice.id])

    tasks, _ = await repo.list_tasks(TaskFilter(organization_ids=[org.id], assigned_to=alice.id))
    assert [t.title for t in tasks] == ["mine"]

    tasks, _ = await repo.list_tasks(TaskFilter(organization_ids=[org.id], status=TaskStatus.TODO))
    assert [t.title for t in tasks] == ["unassigned"]

    assert await repo.list_tasks(TaskFilter(organization_ids=[])) == ([], 0)


async def test_delete_task_removes_assignments(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0007")
    task = await add_task(db_session, org, alice, "Temp", 0)
    repo = SQLAlchemyTaskRepository(db_session)
    await repo.assign(task.id, [alice.id])

    await repo.delete(task.id)

    assert await repo.find_by_id(task.id) is None
    assert await count(db_session, TaskAssignment) == 0


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

async def test_count_members_only_counts_existing_members(db_session):
    alice = await add_user(db_session, "alice")
    bob = await add_user(db_session, "bob")
    outsider = await add_user(db_session, "carol")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0008")
    db_session.add(OrganizationMember(organization_id=org.id, user_id=bob.id, role=OrgRole.member))
    await db_session.flush()
    repo = SQLAlchemyOrganizationRepository(db_session)

    assert await repo.count_members(org.id, [alice.id, bob.id]) == 2
    assert await repo.count_members(org.id, [alice.id, outsider.id]) == 1
    assert await repo.count_members(org.id, []) == 0


async def test_delete_organization_cascades(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-0009")
    keep = await add_org(db_session, "Keep", alice, "aaaa-0000-000a")
    doomed = await add_task(db_session, org, alice, "doomed", 0)
    kept = await add_task(db_session, keep, alice, "kept", 1)
    tasks = SQLAlchemyTaskRepository(db_session)
    await tasks.assign(doomed.id, [alice.id])
    await tasks.assign(kept.id, [alice.id])
    repo = SQLAlchemyOrganizationRepository(db_session)

    await repo.delete(org.id)

    assert await repo.find_by_id(org.id) is None
    assert await tasks.find_by_id(doomed.id) is None
    assert await tasks.find_by_id(kept.id) is not None
    assert await count(db_session, TaskAssignment) == 1
    assert await repo.list_organization_ids_for_user(alice.id) == [keep.id]


async def test_membership_queries(db_session):
    alice = await add_user(db_session, "alice")
    org = await add_org(db_session, "Acme", alice, "aaaa-0000-000b")
    repo = SQLAlchemyOrganizationRepository(db_session)

    assert (await repo.find_by_invite_code("aaaa-0000-000b")).id == org.id
    assert await repo.find_by_invite_code("nope") is None

    [membership] = await repo.list_memberships_for_user(alice.id)
    assert membership.organization.name == "Acme"
    [member] = await repo.list_members(org.id)
    assert member.user.username == "alice"

    await repo.remove_member(org.id, alice.id)
    assert await repo.find_member(org.id, alice.id) is None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

async def test_signup_transaction_creates_all_three(db_session):
    repo = SQLAlchemyUserRepository(db_session)
    user = User(username="alice", password_hash="hash")
    org = Organization(name="alice's organization", invite_code="bbbb-0000-0001")

    await repo.create_with_personal_organization(user, org)

    member = await SQLAlchemyOrganizationRepository(db_session).find_member(org.id, user.id)
    assert member.role == OrgRole.owner
    assert (await repo.find_by_username("alice")).id == user.id


async def test_signup_transaction_rolls_back_on_failure(db_session):
    alice = await add_user(db_session, "alice")
    await add_org(db_session, "Taken", alice, "bbbb-0000-0002")
    repo = SQLAlchemyUserRepository(db_session)

    # Duplicate invite code makes the organization insert fail.
    user = User(username="bob", password_hash="hash")
    org = Organization(name="bob's organization", invite_code="bbbb-0000-0002")
    with pytest.raises(SignupFailedError) as exc_info:
        await repo.create_with_personal_organization(user, org)

    assert exc_info.value.step == "organization"
    assert await repo.find_by_username("bob") is None
    assert await count(db_session, Organization) == 1
    assert await count(db_session, OrganizationMember) == 1

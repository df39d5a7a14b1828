"""Tests for ResourceService - listing, mounts and shadow records.

Tests cover:
- Merging native records with expanded mounts
- Shadow overrides and hides stored in the database
- Isolation of failing, slow and oversized mounts
- Pagination and filters
- Mount creation and delete semantics
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from classvault.core.security import CurrentUser
from classvault.db.models import (
    EmbedType,
    Folder,
    Resource,
    ResourceClass,
    ResourceType,
    ShadowResource,
    UserRole,
)
from classvault.schemas.resource import MountCreate, ResourceOverride
from classvault.services.drive_client import (
    DriveFile,
    DriveNotFoundError,
    DrivePermissionError,
    DriveUnavailableError,
)
from classvault.services.drive_tree import TreeTooLargeError
from classvault.services.resources import (
    InvalidInputError,
    MountExpander,
    ResourceFilters,
    ResourceNotFoundError,
    ResourceService,
    paginate,
)

T0 = datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc)

ADMIN = CurrentUser(user_id="admin-1", role=UserRole.ADMIN)
STUDENT = CurrentUser(user_id="student-1", role=UserRole.STUDENT, class_name="5")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service(db_session, expander) -> ResourceService:
    return ResourceService(db_session, expander)


def native(
    title: str,
    created_at: datetime = T0,
    class_name: ResourceClass = ResourceClass.CLASS_5,
    category: str = "Science",
    resource_type: ResourceType = ResourceType.PDF,
    **kwargs,
) -> Resource:
    return Resource(
        title=title,
        link=f"https://example.com/{title.lower().replace(' ', '-')}.pdf",
        class_name=class_name,
        category=category,
        resource_type=resource_type,
        created_by="admin-1",
        created_at=created_at,
        **kwargs,
    )


def mount_record(
    drive_folder_id: str,
    created_at: datetime = T0,
    class_name: ResourceClass = ResourceClass.CLASS_5,
    category: str = "Science",
) -> Resource:
    return Resource(
        title=f"Mount {drive_folder_id}",
        link=f"https://drive.google.com/drive/folders/{drive_folder_id}",
        class_name=class_name,
        category=category,
        resource_type=ResourceType.GDRIVE_FOLDER,
        embed_type=EmbedType.IFRAME,
        drive_folder_id=drive_folder_id,
        created_by="admin-1",
        created_at=created_at,
    )


def drive_folder_with_docs(fake_drive, folder_id: str, count: int) -> list[str]:
    fake_drive.add_folder(folder_id)
    return [fake_drive.add_file(f"{folder_id}-d{i}", folder_id) for i in range(1, count + 1)]


# =============================================================================
# Listing Tests
# =============================================================================


class TestListing:
    """Tests for list_resources."""

    @pytest.mark.asyncio
    async def test_native_only_newest_first(self, service, db_session):
        db_session.add_all([
            native("Old", T0),
            native("New", T0 + timedelta(days=1)),
            native("Hidden", T0 + timedelta(days=2), is_hidden=True),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.title for r in result.resources] == ["New", "Old"]
        assert result.total_resources == 2
        assert result.total_pages == 1
        assert all(not r.is_external for r in result.resources)

    @pytest.mark.asyncio
    async def test_empty_listing(self, service):
        result = await service.list_resources(ResourceFilters())

        assert result.resources == []
        assert result.total_resources == 0
        assert result.total_pages == 1
        assert result.current_page == 1

    @pytest.mark.asyncio
    async def test_mount_expanded_with_shadows(self, service, db_session, fake_drive):
        fake_drive.add_folder("root")
        fake_drive.add_file("d1", "root")
        fake_drive.add_folder("sub", parent="root")
        fake_drive.add_file("d2", "sub")
        fake_drive.add_file("d3", "root")
        fake_drive.add_file("pic", "root", name="pic.jpg", mime_type="image/jpeg")

        mount = mount_record("root")
        db_session.add(mount)
        await db_session.flush()
        db_session.add_all([
            ShadowResource(
                external_item_id="d1",
                title="Renamed",
                link="https://example.com/renamed.pdf",
                class_name=ResourceClass.CLASS_5,
                category="Science",
                resource_type=ResourceType.PDF,
                created_by="admin-1",
            ),
            ShadowResource(external_item_id="d2", is_hidden=True, created_by="admin-1"),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.id for r in result.resources] == ["ext-d1", "ext-d3"]
        assert result.resources[0].title == "Renamed"
        assert result.resources[0].resource_type == ResourceType.PDF
        assert result.resources[1].title == "d3.pdf"
        assert result.resources[1].mount_id == mount.id
        assert result.resources[1].resource_type == ResourceType.EXTERNAL_FILE

    @pytest.mark.asyncio
    async def test_mount_replaced_by_documents_in_position(
        self, service, db_session, fake_drive
    ):
        drive_folder_with_docs(fake_drive, "m", 2)
        db_session.add_all([
            native("Newest", T0 + timedelta(days=2)),
            mount_record("m", T0 + timedelta(days=1)),
            native("Oldest", T0),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.title for r in result.resources] == [
            "Newest", "m-d1.pdf", "m-d2.pdf", "Oldest",
        ]

    @pytest.mark.asyncio
    async def test_latest_stored_override_wins(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m", 1)
        db_session.add(mount_record("m"))
        for minutes, title in [(5, "Latest"), (0, "Oldest"), (2, "Middle")]:
            db_session.add(
                ShadowResource(
                    external_item_id="m-d1",
                    title=title,
                    link="https://example.com/x.pdf",
                    class_name=ResourceClass.CLASS_5,
                    category="Science",
                    resource_type=ResourceType.PDF,
                    created_by="admin-1",
                    created_at=T0 + timedelta(minutes=minutes),
                )
            )
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.title for r in result.resources] == ["Latest"]


class TestMountIsolation:
    """A failing mount contributes nothing; the rest of the listing survives."""

    @pytest.mark.asyncio
    async def test_missing_mount_folder(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "good", 2)
        db_session.add_all([
            mount_record("gone", T0 + timedelta(days=1)),
            mount_record("good", T0),
            native("Native", T0 - timedelta(days=1)),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.title for r in result.resources] == ["good-d1.pdf", "good-d2.pdf", "Native"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            DrivePermissionError("denied"),
            DriveUnavailableError("503"),
            TreeTooLargeError("too big", limit="max_nodes", value=9999),
        ],
    )
    async def test_provider_errors(self, service, db_session, fake_drive, error):
        drive_folder_with_docs(fake_drive, "good", 1)
        drive_folder_with_docs(fake_drive, "bad", 3)
        fake_drive.fail("bad", error)
        db_session.add_all([mount_record("bad", T0 + timedelta(days=1)), mount_record("good")])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.id for r in result.resources] == ["ext-good-d1"]

    @pytest.mark.asyncio
    async def test_unexpected_errors(self, service, db_session, fake_drive):
        with pytest.raises(ValidationError) as exc_info:
            DriveFile.model_validate({"id": "malformed"})
        malformed_payload = exc_info.value
        drive_folder_with_docs(fake_drive, "good", 1)
        drive_folder_with_docs(fake_drive, "bad-payload", 2)
        drive_folder_with_docs(fake_drive, "bad-key", 2)
        fake_drive.fail("bad-payload", malformed_payload)
        fake_drive.fail("bad-key", KeyError("files"))
        db_session.add_all([
            mount_record("bad-payload", T0 + timedelta(days=2)),
            mount_record("bad-key", T0 + timedelta(days=1)),
            mount_record("good"),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters())

        assert [r.id for r in result.resources] == ["ext-good-d1"]

    @pytest.mark.asyncio
    async def test_slow_mount_times_out(self, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "slow", 2)
        drive_folder_with_docs(fake_drive, "fast", 1)
        fake_drive.delays["slow"] = 5.0
        expander = MountExpander(fake_drive, mount_timeout=0.1)
        db_session.add_all([mount_record("slow", T0 + timedelta(days=1)), mount_record("fast")])
        await db_session.flush()

        result = await ResourceService(db_session, expander).list_resources(ResourceFilters())

        assert [r.id for r in result.resources] == ["ext-fast-d1"]

    @pytest.mark.asyncio
    async def test_mounts_expand_concurrently(self, db_session, fake_drive):
        for name in ("m1", "m2", "m3"):
            drive_folder_with_docs(fake_drive, name, 1)
            fake_drive.delays[name] = 0.1
        expander = MountExpander(fake_drive, mount_timeout=2.0, max_concurrent_mounts=3)
        db_session.add_all([
            mount_record("m1", T0 + timedelta(days=3)),
            mount_record("m2", T0 + timedelta(days=2)),
            mount_record("m3", T0 + timedelta(days=1)),
        ])
        await db_session.flush()

        loop = asyncio.get_running_loop()
        started = loop.time()
        result = await ResourceService(db_session, expander).list_resources(ResourceFilters())
        elapsed = loop.time() - started

        assert [r.id for r in result.resources] == ["ext-m1-d1", "ext-m2-d1", "ext-m3-d1"]
        assert elapsed < 0.5


class TestPagination:
    """Tests for pagination over the merged listing."""

    @pytest.mark.asyncio
    async def test_pages_over_native_and_mount_entries(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m", 5)
        db_session.add(mount_record("m", T0 + timedelta(days=30)))
        db_session.add_all([native(f"N{i:02d}", T0 + timedelta(days=i)) for i in range(20)])
        await db_session.flush()

        page1 = await service.list_resources(ResourceFilters(), page=1, page_size=12)
        page3 = await service.list_resources(ResourceFilters(), page=3, page_size=12)

        assert page1.total_resources == 25
        assert page1.total_pages == 3
        assert len(page1.resources) == 12
        assert [r.id for r in page1.resources[:5]] == [f"ext-m-d{i}" for i in range(1, 6)]
        assert len(page3.resources) == 1
        assert page3.resources[0].title == "N00"
        assert page3.current_page == 3

    def test_page_past_end_is_empty(self):
        result = paginate([], page=4, page_size=12)
        assert result.resources == []
        assert result.total_pages == 1
        assert result.current_page == 4


class TestFilters:
    """Tests for listing filters and visibility."""

    @pytest.mark.asyncio
    async def test_student_visibility(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m9", 1)
        db_session.add_all([
            native("Five", class_name=ResourceClass.CLASS_5),
            native("General", class_name=ResourceClass.GENERAL),
            native("Seven", class_name=ResourceClass.CLASS_7),
            mount_record("m9", class_name=ResourceClass.CLASS_9),
        ])
        await db_session.flush()

        filters = ResourceFilters(visible_classes=frozenset(STUDENT.visible_classes()))
        result = await service.list_resources(filters)

        assert sorted(r.title for r in result.resources) == ["Five", "General"]
        assert ("get_node", "m9") not in fake_drive.calls

    @pytest.mark.asyncio
    async def test_category_type_and_search(self, service, db_session):
        db_session.add_all([
            native("Algebra Basics", category="Maths", description="intro"),
            native("Cells", category="Science", description="Biology 100% basics"),
            native("Poems", category="English", resource_type=ResourceType.AUDIO),
        ])
        await db_session.flush()

        by_category = await service.list_resources(ResourceFilters(category="Maths"))
        by_all = await service.list_resources(ResourceFilters(category="all"))
        by_type = await service.list_resources(
            ResourceFilters(resource_type=ResourceType.AUDIO)
        )
        by_search = await service.list_resources(ResourceFilters(search="BASICS"))
        by_percent = await service.list_resources(ResourceFilters(search="100%"))

        assert [r.title for r in by_category.resources] == ["Algebra Basics"]
        assert by_all.total_resources == 3
        assert [r.title for r in by_type.resources] == ["Poems"]
        assert sorted(r.title for r in by_search.resources) == ["Algebra Basics", "Cells"]
        assert [r.title for r in by_percent.resources] == ["Cells"]

    @pytest.mark.asyncio
    async def test_mount_documents_inherit_mount_facets(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m", 1)
        db_session.add_all([
            mount_record("m", category="History"),
            native("Maths Sheet", category="Maths"),
        ])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters(category="History"))

        assert [r.id for r in result.resources] == ["ext-m-d1"]
        assert result.resources[0].category == "History"

    @pytest.mark.asyncio
    async def test_folder_filter(self, service, db_session):
        folder = Folder(name="Term 1", class_name=ResourceClass.CLASS_5, created_by="admin-1")
        db_session.add(folder)
        await db_session.flush()
        db_session.add_all([native("Inside", folder_id=folder.id), native("Outside")])
        await db_session.flush()

        result = await service.list_resources(ResourceFilters(folder_id=folder.id))

        assert [r.title for r in result.resources] == ["Inside"]
        assert result.resources[0].folder_id == folder.id


# =============================================================================
# Mount Creation Tests
# =============================================================================


class TestCreateMount:
    """Tests for create_mount."""

    @pytest.mark.asyncio
    async def test_create_from_url(self, service, db_session, fake_drive):
        fake_drive.add_folder("1AbCdEfGhIjK", "Chemistry")
        fake_drive.add_file("c1", "1AbCdEfGhIjK")
        fake_drive.add_file("c2", "1AbCdEfGhIjK", name="photo.jpg", mime_type="image/jpeg")

        data = MountCreate(
            folder_link="https://drive.google.com/drive/folders/1AbCdEfGhIjK?usp=sharing",
            class_name=ResourceClass.CLASS_8,
            category="Chemistry",
        )
        mount, documents_found = await service.create_mount(data, ADMIN)

        assert documents_found == 1
        assert mount.title == "Chemistry"
        assert mount.resource_type == ResourceType.GDRIVE_FOLDER
        assert mount.embed_type == EmbedType.IFRAME
        assert mount.drive_folder_id == "1AbCdEfGhIjK"
        assert mount.created_by == "admin-1"
        assert mount.is_mount

        stored = (await db_session.execute(select(Resource))).scalars().all()
        assert [r.id for r in stored] == [mount.id]

    @pytest.mark.asyncio
    async def test_create_from_bare_id_with_title(self, service, fake_drive):
        fake_drive.add_folder("1AbCdEfGhIjK", "Drive Name")

        data = MountCreate(
            folder_link="1AbCdEfGhIjK",
            title="Custom",
            class_name=ResourceClass.GENERAL,
            category="Library",
        )
        mount, documents_found = await service.create_mount(data, ADMIN)

        assert mount.title == "Custom"
        assert documents_found == 0

    @pytest.mark.asyncio
    async def test_invalid_link(self, service):
        data = MountCreate(
            folder_link="https://example.com/folder",
            class_name=ResourceClass.CLASS_1,
            category="Art",
        )
        with pytest.raises(InvalidInputError):
            await service.create_mount(data, ADMIN)

    @pytest.mark.asyncio
    async def test_missing_folder(self, service):
        data = MountCreate(
            folder_link="1AbCdEfGhIjK", class_name=ResourceClass.CLASS_1, category="Art"
        )
        with pytest.raises(DriveNotFoundError):
            await service.create_mount(data, ADMIN)

    @pytest.mark.asyncio
    async def test_link_to_file(self, service, fake_drive):
        fake_drive.add_folder("parent")
        fake_drive.add_file("1FileIdIsLong", "parent")

        data = MountCreate(
            folder_link="1FileIdIsLong", class_name=ResourceClass.CLASS_1, category="Art"
        )
        with pytest.raises(InvalidInputError, match="file"):
            await service.create_mount(data, ADMIN)

    @pytest.mark.asyncio
    async def test_permission_denied(self, service, fake_drive):
        fake_drive.add_folder("1AbCdEfGhIjK")
        fake_drive.fail("1AbCdEfGhIjK", DrivePermissionError("denied"))

        data = MountCreate(
            folder_link="1AbCdEfGhIjK", class_name=ResourceClass.CLASS_1, category="Art"
        )
        with pytest.raises(DrivePermissionError):
            await service.create_mount(data, ADMIN)

    @pytest.mark.asyncio
    async def test_unknown_taxonomy_folder(self, service, fake_drive):
        fake_drive.add_folder("1AbCdEfGhIjK")

        data = MountCreate(
            folder_link="1AbCdEfGhIjK",
            class_name=ResourceClass.CLASS_1,
            category="Art",
            folder_id="does-not-exist",
        )
        with pytest.raises(InvalidInputError, match="Folder not found"):
            await service.create_mount(data, ADMIN)

    def test_extract_drive_folder_id(self):
        extract = ResourceService.extract_drive_folder_id
        assert extract("https://drive.google.com/drive/folders/1AbCdEfGhIjK") == "1AbCdEfGhIjK"
        assert extract("  1AbCdEfGhIjK  ") == "1AbCdEfGhIjK"
        with pytest.raises(InvalidInputError):
            extract("short")


# =============================================================================
# Shadow and Delete Tests
# =============================================================================


class TestOverrideAndDelete:
    """Tests for override_external and delete_resource."""

    @pytest.fixture
    def override_data(self) -> ResourceOverride:
        return ResourceOverride(
            title="Better Title",
            link="https://example.com/better.pdf",
            class_name=ResourceClass.CLASS_5,
            category="Science",
            resource_type=ResourceType.PDF,
        )

    @pytest.mark.asyncio
    async def test_override_appends_record(self, service, db_session, override_data):
        first = await service.override_external("ext-d1", override_data, ADMIN)
        second = await service.override_external("ext-d1", override_data, ADMIN)

        assert first.id != second.id
        assert first.external_item_id == "d1"
        assert first.is_hidden is False
        rows = (await db_session.execute(select(ShadowResource))).scalars().all()
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_override_native_id_rejected(self, service, override_data):
        with pytest.raises(InvalidInputError):
            await service.override_external("some-native-id", override_data, ADMIN)

    @pytest.mark.asyncio
    async def test_override_records_mount(self, service, db_session, override_data):
        mount = mount_record("m")
        db_session.add(mount)
        await db_session.flush()

        shadow = await service.override_external(
            "ext-d1", override_data, ADMIN, mount_id=mount.id
        )

        assert shadow.mount_id == mount.id

    @pytest.mark.asyncio
    async def test_override_with_non_mount_rejected(self, service, db_session, override_data):
        resource = native("Plain")
        db_session.add(resource)
        await db_session.flush()

        with pytest.raises(InvalidInputError):
            await service.override_external(
                "ext-d1", override_data, ADMIN, mount_id=resource.id
            )

    @pytest.mark.asyncio
    async def test_delete_external_hides(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m", 2)
        db_session.add(mount_record("m"))
        await db_session.flush()

        action = await service.delete_resource("ext-m-d1", ADMIN)
        result = await service.list_resources(ResourceFilters())

        assert action == "hidden"
        assert [r.id for r in result.resources] == ["ext-m-d2"]
        assert fake_drive.nodes["m-d1"] is not None

    @pytest.mark.asyncio
    async def test_delete_mount_unmounts(self, service, db_session, fake_drive):
        drive_folder_with_docs(fake_drive, "m", 2)
        mount = mount_record("m")
        db_session.add(mount)
        await db_session.flush()

        action = await service.delete_resource(mount.id, ADMIN)
        result = await service.list_resources(ResourceFilters())

        assert action == "unmounted"
        assert result.resources == []
        assert await db_session.get(Resource, mount.id) is None

    @pytest.mark.asyncio
    async def test_delete_native_soft_deletes(self, service, db_session):
        resource = native("Plain")
        db_session.add(resource)
        await db_session.flush()

        action = await service.delete_resource(resource.id, ADMIN)
        result = await service.list_resources(ResourceFilters())

        assert action == "soft_deleted"
        assert result.resources == []
        assert (await db_session.get(Resource, resource.id)).is_hidden is True

    @pytest.mark.asyncio
    async def test_delete_unknown_native(self, service):
        with pytest.raises(ResourceNotFoundError):
            await service.delete_resource("missing-id", ADMIN)

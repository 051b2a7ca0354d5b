import pytest

from db import UNKNOWN_USER, normalize_url, shape_project
from errors import BackendError, NotFoundError, PermissionDeniedError, ValidationError
from models import Mood, TaskStatus


def _all_bucketed(project):
    return [d for ids in project.tasks.values() for d in ids]


class TestProjects:
    def test_create_project_with_two_empathize_tasks(self, store):
        project = store.create_project(
            "Checkout redesign",
            "Fix the funnel",
            {"Empathize": ["user-interviews", "user-surveys"]},
            "user-1",
        )
        loaded = store.get_project_with_tasks(project.id)

        assert loaded.title == "Checkout redesign"
        assert loaded.tasks["Empathize"] == ["user-interviews", "user-surveys"]
        assert len(loaded.tasks_by_status[TaskStatus.TODO]) == 2
        assert loaded.tasks_by_status[TaskStatus.DONE] == []

    def test_phase_buckets_cover_every_task_once(self, store):
        project = store.create_project(
            "Onboarding",
            None,
            {
                "Empathize": ["user-interviews", "empathy-maps"],
                "Define": ["user-personas"],
                "Test": ["usability-testing"],
            },
            "user-1",
        )
        loaded = store.get_project_with_tasks(project.id)
        tasks = store.list_tasks(project.id)

        bucketed = _all_bucketed(loaded)
        assert sorted(bucketed) == sorted(t.deliverable_id for t in tasks)
        assert len(bucketed) == len(set(bucketed))
        assert set(loaded.task_ids.values()) == {t.id for t in tasks}

    def test_task_lookup_maps_deliverable_to_task(self, store):
        project = store.create_project("P", None, {"Ideate": ["sketches"]}, "user-1")
        task = store.list_tasks(project.id)[0]
        loaded = store.get_project_with_tasks(project.id)
        assert loaded.task_ids == {"sketches": task.id}

    def test_new_tasks_default_to_todo(self, store):
        project = store.create_project("P", None, {"Prototype": ["design-system"]}, "user-1")
        assert [t.status for t in store.list_tasks(project.id)] == [TaskStatus.TODO]

    def test_create_without_tasks_skips_task_insert(self, store, supabase):
        store.create_project("Empty", None, {}, "user-1")
        assert ("tasks", "insert") not in supabase.calls

    def test_missing_project_raises(self, store):
        with pytest.raises(NotFoundError):
            store.get_project_with_tasks("nope")

    def test_list_projects_newest_first(self, store):
        store.create_project("First", None, {}, "user-1")
        store.create_project("Second", None, {}, "user-1")
        assert [p.title for p in store.list_projects()] == ["Second", "First"]

    def test_task_insert_failure_leaves_empty_project(self, store, supabase):
        supabase.failures.add(("tasks", "insert"))
        with pytest.raises(BackendError):
            store.create_project("Half done", None, {"Define": ["user-stories"]}, "user-1")
        assert [p.title for p in store.list_projects()] == ["Half done"]

    def test_delete_project(self, store):
        project = store.create_project("Gone", None, {}, "user-1")
        store.delete_project(project.id)
        assert store.list_projects() == []


class TestUpdateProject:
    def test_empty_task_map_removes_all_tasks(self, store):
        project = store.create_project(
            "P", None, {"Empathize": ["user-interviews", "user-surveys"]}, "user-1"
        )
        store.update_project(project.id, "P", None, {}, "user-1")
        assert store.list_tasks(project.id) == []

    def test_surviving_tasks_keep_status_and_id(self, store):
        project = store.create_project(
            "P", None, {"Empathize": ["user-interviews", "user-surveys"]}, "user-1"
        )
        interviews = next(
            t for t in store.list_tasks(project.id) if t.deliverable_id == "user-interviews"
        )
        store.update_task_status(interviews.id, TaskStatus.DONE)

        store.update_project(
            project.id,
            "P2",
            "new",
            {"Empathize": ["user-interviews"], "Define": ["user-personas"]},
            "user-1",
        )
        tasks = {t.deliverable_id: t for t in store.list_tasks(project.id)}

        assert set(tasks) == {"user-interviews", "user-personas"}
        assert tasks["user-interviews"].id == interviews.id
        assert tasks["user-interviews"].status == TaskStatus.DONE
        assert tasks["user-personas"].status == TaskStatus.TODO
        assert store.get_project_with_tasks(project.id).title == "P2"

    def test_update_missing_project(self, store):
        with pytest.raises(NotFoundError):
            store.update_project("nope", "T", None, {}, "user-1")


class TestTasks:
    def test_add_tasks_appends_todo(self, store):
        project = store.create_project("P", None, {"Ideate": ["brainstorming"]}, "user-1")
        added = store.add_tasks(project.id, "Ideate", ["storyboards", "crazy-eights"], "user-1")

        assert [t.deliverable_id for t in added] == ["storyboards", "crazy-eights"]
        assert all(t.status == TaskStatus.TODO for t in added)
        loaded = store.get_project_with_tasks(project.id)
        assert loaded.tasks["Ideate"] == ["brainstorming", "storyboards", "crazy-eights"]

    def test_add_tasks_skips_existing_deliverables(self, store):
        project = store.create_project("P", None, {"Ideate": ["brainstorming"]}, "user-1")
        added = store.add_tasks(project.id, "Ideate", ["brainstorming"], "user-1")
        assert added == []
        assert len(store.list_tasks(project.id)) == 1

    def test_update_status_is_idempotent(self, store):
        project = store.create_project("P", None, {"Test": ["a-b-testing"]}, "user-1")
        task = store.list_tasks(project.id)[0]

        first = store.update_task_status(task.id, TaskStatus.IN_PROGRESS)
        second = store.update_task_status(task.id, TaskStatus.IN_PROGRESS)

        assert first.status == second.status == TaskStatus.IN_PROGRESS
        assert first.model_dump(exclude={"updated_at"}) == second.model_dump(exclude={"updated_at"})

    def test_update_status_of_missing_task(self, store):
        with pytest.raises(NotFoundError):
            store.update_task_status("nope", TaskStatus.DONE)

    def test_shape_groups_by_status(self):
        project = {"id": "p1", "title": "P"}
        rows = [
            {"id": "t1", "project_id": "p1", "phase": "Define", "deliverable_id": "user-stories", "status": "done"},
            {"id": "t2", "project_id": "p1", "phase": "Define", "deliverable_id": "how-might-we", "status": "todo"},
            {"id": "t1", "project_id": "p1", "phase": "Define", "deliverable_id": "user-stories", "status": "done"},
        ]
        shaped = shape_project(project, rows)
        assert shaped.tasks == {"Define": ["user-stories", "how-might-we"]}
        assert [c.task_id for c in shaped.tasks_by_status[TaskStatus.DONE]] == ["t1"]
        assert shaped.tasks_by_status[TaskStatus.IN_PROGRESS] == []


class TestNormalizeUrl:
    def test_adds_https_scheme(self):
        assert normalize_url("example.com/brief") == "https://example.com/brief"

    def test_keeps_existing_scheme(self):
        assert normalize_url("http://example.com") == "http://example.com"
        assert normalize_url("https://docs.example.com/a?b=1") == "https://docs.example.com/a?b=1"

    def test_scheme_check_ignores_case(self):
        assert normalize_url("HTTPS://Example.com/x") == "HTTPS://Example.com/x"

    @pytest.mark.parametrize(
        "url",
        ["javascript://%0aalert(1)", "ftp://files.example.com/a", "file://host/etc/passwd"],
    )
    def test_other_schemes_are_never_stored_as_is(self, url):
        try:
            result = normalize_url(url)
        except ValidationError:
            return
        assert result == f"https://{url}"

    @pytest.mark.parametrize("url", ["", "   ", "https://", "http://"])
    def test_rejects_unparsable(self, url):
        with pytest.raises(ValidationError):
            normalize_url(url)


class TestDocuments:
    def test_document_crud(self, store):
        doc = store.add_document("task-1", "Notes", "example.com/notes", "user-1")
        assert doc.url == "https://example.com/notes"

        store.add_document("task-1", "Recording", "https://example.com/rec", "user-1")
        assert [d.title for d in store.list_documents("task-1")] == ["Notes", "Recording"]

        updated = store.update_document(doc.id, "Notes v2", "example.org")
        assert (updated.title, updated.url) == ("Notes v2", "https://example.org")

        store.delete_document(doc.id)
        assert [d.title for d in store.list_documents("task-1")] == ["Recording"]

    def test_bad_url_is_not_stored(self, store, supabase):
        with pytest.raises(ValidationError):
            store.add_document("task-1", "Broken", "https://", "user-1")
        assert ("task_documents", "insert") not in supabase.calls

    def test_update_missing_document(self, store):
        with pytest.raises(NotFoundError):
            store.update_document("nope", "T", "example.com")


class TestComments:
    def test_comments_resolve_author(self, store, supabase):
        supabase.tables["user_profiles"] = [
            {"id": "user-1", "email": "ada@example.com", "name": "Ada"},
            {"id": "user-2", "email": "bob@example.com", "name": None},
        ]
        store.add_comment("task-1", "user-1", "Looks good")
        store.add_comment("task-1", "user-2", "Agreed")
        store.add_comment("task-1", "user-3", "Who am I")

        comments = store.list_comments("task-1")
        assert [c.user_name for c in comments] == ["Ada", "bob@example.com", UNKNOWN_USER]
        assert comments[2].user_email is None

    def test_author_lookup_is_one_query(self, store, supabase):
        for n in range(3):
            store.add_comment("task-1", "user-1", f"comment {n}")
        supabase.calls.clear()
        store.list_comments("task-1")
        assert supabase.calls.count(("user_profiles", "select")) == 1

    def test_edit_keeps_author_and_task(self, store):
        comment = store.add_comment("task-1", "user-1", "first")
        edited = store.update_comment(comment.id, "second", "user-1")
        assert edited.content == "second"
        assert (edited.task_id, edited.user_id) == ("task-1", "user-1")

    def test_only_author_can_edit_or_delete(self, store):
        comment = store.add_comment("task-1", "user-1", "mine")
        with pytest.raises(PermissionDeniedError):
            store.update_comment(comment.id, "yours now", "user-2")
        with pytest.raises(PermissionDeniedError):
            store.delete_comment(comment.id, "user-2")
        store.delete_comment(comment.id, "user-1")
        assert store.list_comments("task-1") == []

    def test_blank_comment_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add_comment("task-1", "user-1", "   ")


class TestUpdates:
    def test_updates_newest_first_with_mood(self, store):
        store.add_update("p1", "user-1", "Kickoff went well", Mood.GREAT)
        store.add_update("p1", "user-1", "Blocked on research", Mood.NOT_GREAT)

        updates = store.list_updates("p1")
        assert [u.content for u in updates] == ["Blocked on research", "Kickoff went well"]
        assert updates[0].mood == Mood.NOT_GREAT
        assert updates[0].user_name == UNKNOWN_USER

    def test_edit_and_delete_update(self, store):
        update = store.add_update("p1", "user-1", "draft", Mood.OKAY)
        assert store.update_update(update.id, "final", "user-1").content == "final"
        store.delete_update(update.id, "user-1")
        assert store.list_updates("p1") == []

    def test_backend_failure_surfaces_message(self, store, supabase):
        supabase.failures.add(("project_updates", "select"))
        with pytest.raises(BackendError) as exc:
            store.list_updates("p1")
        assert "project_updates" in exc.value.message


class TestProfiles:
    def test_missing_profile(self, store):
        assert store.get_profile("user-1") is None

    def test_upsert_profile(self, store):
        store.upsert_profile("user-1", "ada@example.com", "  Ada  ")
        profile = store.upsert_profile("user-1", "ada@example.com", "Ada L.")
        assert profile.name == "Ada L."
        assert store.get_profile("user-1").name == "Ada L."

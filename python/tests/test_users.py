"""Tests for user routes: credits, project list and detail, publishing."""

from sitebuilder.services.conversations import ROLLED_BACK
from tests.factories import (
    create_test_project,
    create_test_user,
    reload_project,
)
from tests.helpers import auth_headers


class TestCredits:
    def test_new_user_gets_default_balance(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/credits", headers=auth_headers(test_user_id)
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"credits": 20}}

    def test_existing_balance_is_returned(self, authenticated_client, db_session):
        user = create_test_user(db_session, credits=7)

        response = authenticated_client.get("/api/user/credits", headers=auth_headers(user.id))

        assert response.json()["data"]["credits"] == 7


class TestUserProjects:
    def test_lists_only_own_projects(self, authenticated_client, db_session):
        user = create_test_user(db_session)
        other = create_test_user(db_session)
        first = create_test_project(db_session, user.id, name="First")
        second = create_test_project(db_session, user.id, name="Second")
        create_test_project(db_session, other.id, name="Not mine")

        response = authenticated_client.get("/api/user/projects", headers=auth_headers(user.id))

        assert response.status_code == 200
        ids = [p["id"] for p in response.json()["data"]["projects"]]
        assert ids == [str(second.id), str(first.id)]

    def test_empty_list(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/projects", headers=auth_headers(test_user_id)
        )

        assert response.json() == {"data": {"projects": []}}

    def test_project_detail_includes_transcript(self, authenticated_client, db_session):
        user = create_test_user(db_session)
        project = create_test_project(db_session, user.id)
        authenticated_client.get(
            f"/api/project/rollback/{project.id}/{project.current_version_index}",
            headers=auth_headers(user.id),
        )

        response = authenticated_client.get(
            f"/api/user/project/{project.id}", headers=auth_headers(user.id)
        )

        assert response.status_code == 200, response.text
        data = response.json()["data"]["project"]
        assert data["current_version_index"] == str(project.current_version_index)
        assert len(data["versions"]) == 1
        assert [(c["seq"], c["role"], c["content"]) for c in data["conversation"]] == [
            (1, "assistant", ROLLED_BACK)
        ]

    def test_project_detail_of_other_user(self, authenticated_client, db_session):
        owner = create_test_user(db_session)
        intruder = create_test_user(db_session)
        project = create_test_project(db_session, owner.id)

        response = authenticated_client.get(
            f"/api/user/project/{project.id}", headers=auth_headers(intruder.id)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_PROJECT_NOT_FOUND"


class TestPublishToggle:
    def test_toggle_publishes_then_unpublishes(self, authenticated_client, db_session):
        user = create_test_user(db_session)
        project = create_test_project(db_session, user.id)
        url = f"/api/user/publish-toggle/{project.id}"

        first = authenticated_client.get(url, headers=auth_headers(user.id))
        assert first.status_code == 200
        assert first.json() == {
            "data": {"message": "Project published successfully", "is_published": True}
        }
        assert reload_project(db_session, project.id).is_published is True

        second = authenticated_client.get(url, headers=auth_headers(user.id))
        assert second.json()["data"] == {"message": "Project unpublished", "is_published": False}
        assert reload_project(db_session, project.id).is_published is False

    def test_cannot_publish_without_code(self, authenticated_client, db_session):
        user = create_test_user(db_session)
        project = create_test_project(db_session, user.id, current_code=None)

        response = authenticated_client.get(
            f"/api/user/publish-toggle/{project.id}", headers=auth_headers(user.id)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_NOTHING_TO_PUBLISH"
        assert reload_project(db_session, project.id).is_published is False

    def test_toggle_other_users_project(self, authenticated_client, db_session):
        owner = create_test_user(db_session)
        intruder = create_test_user(db_session)
        project = create_test_project(db_session, owner.id)

        response = authenticated_client.get(
            f"/api/user/publish-toggle/{project.id}", headers=auth_headers(intruder.id)
        )

        assert response.status_code == 404
        assert reload_project(db_session, project.id).is_published is False

from unittest.mock import MagicMock

import pytest
import requests

from agent_site_builder.errors import ConfigError, ProjectLogError
from agent_site_builder.integrations.supabase import ProjectLog, ProjectStore


def _response(status: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.text = "error body"
    resp.json.return_value = payload
    return resp


class TestProjectStore:
    def test_requires_url_and_key(self):
        with pytest.raises(ConfigError):
            ProjectStore(None, "key")
        with pytest.raises(ConfigError):
            ProjectStore("https://db.example.com", "")

    def test_insert_posts_row(self):
        session = MagicMock()
        session.post.return_value = _response(201)
        store = ProjectStore("https://db.example.com/", "anon-key", session=session)

        store.insert(ProjectLog(prompt="blog", url="https://x.vercel.app", component_count=2))

        args, kwargs = session.post.call_args
        assert args[0] == "https://db.example.com/rest/v1/projects"
        assert kwargs["json"] == [{"prompt": "blog", "url": "https://x.vercel.app", "component_count": 2}]
        assert kwargs["headers"]["apikey"] == "anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer anon-key"

    def test_insert_error_status(self):
        session = MagicMock()
        session.post.return_value = _response(400)
        store = ProjectStore("https://db.example.com", "k", session=session)

        with pytest.raises(ProjectLogError, match="400"):
            store.insert(ProjectLog(prompt="p", url="u"))

    def test_insert_transport_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        store = ProjectStore("https://db.example.com", "k", session=session)

        with pytest.raises(ProjectLogError):
            store.insert(ProjectLog(prompt="p", url="u"))

    def test_list_projects_newest_first(self):
        session = MagicMock()
        session.get.return_value = _response(payload=[
            {"id": 2, "prompt": "b", "url": "https://b.vercel.app", "created_at": "2025-07-12T10:00:00Z"},
            {"id": 1, "prompt": "a", "url": "https://a.vercel.app", "created_at": "2025-07-11T10:00:00Z"},
        ])
        store = ProjectStore("https://db.example.com", "k", session=session)

        logs = store.list_projects()

        assert [log.id for log in logs] == [2, 1]
        assert session.get.call_args[1]["params"]["order"] == "created_at.desc"

    def test_list_projects_bad_payload(self):
        session = MagicMock()
        session.get.return_value = _response(payload=[{"id": "x"}])
        store = ProjectStore("https://db.example.com", "k", session=session)

        with pytest.raises(ProjectLogError):
            store.list_projects()

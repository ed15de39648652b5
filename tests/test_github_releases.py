from __future__ import annotations

import unittest
from unittest import mock

import requests

from _testutil import FakeResponse, FakeSession, ensure_repo_on_path

ensure_repo_on_path()

from nexe_builds.config import load_publisher_config  # noqa: E402
from nexe_builds.errors import GitHubApiError  # noqa: E402
from nexe_builds.github.releases import GitHubReleasesClient, Release, find_asset, find_release  # noqa: E402


def _release(rid: int, tag: str, assets=None):
    return {"id": rid, "tag_name": tag, "assets": assets, "upload_url": ""}


class TestGitHubReleasesClient(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = load_publisher_config().github

    def _client(self, session: FakeSession) -> GitHubReleasesClient:
        return GitHubReleasesClient(settings=self.settings, token="secret", session=session)

    def test_list_releases_follows_pagination(self) -> None:
        next_url = "https://api.github.com/repositories/1/releases?per_page=100&page=2"
        session = FakeSession(
            [
                FakeResponse(200, [_release(1, "5.2.0", [{"name": "linux-x64-20.11.0", "id": 11, "size": 3}])],
                             links={"next": {"url": next_url}}),
                FakeResponse(200, [_release(2, "5.1.0", None)]),
            ]
        )

        releases = self._client(session).list_releases()

        self.assertEqual([r.tag_name for r in releases], ["5.2.0", "5.1.0"])
        self.assertEqual(releases[0].assets[0].name, "linux-x64-20.11.0")
        self.assertEqual(releases[1].assets, [])

        first, second = session.calls
        self.assertEqual(first["method"], "GET")
        self.assertEqual(first["url"], "https://api.github.com/repos/SmartThingsCommunity/cli-nexe-builds/releases")
        self.assertEqual(first["params"], {"per_page": 100})
        self.assertEqual(first["headers"]["Authorization"], "token secret")
        self.assertEqual(second["url"], next_url)
        self.assertIsNone(second["params"])

    def test_list_releases_error_status(self) -> None:
        session = FakeSession([FakeResponse(401, None, text="Bad credentials")])
        with self.assertRaises(GitHubApiError) as ctx:
            self._client(session).list_releases()
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("Bad credentials", str(ctx.exception))

    def test_upload_asset(self) -> None:
        session = FakeSession([FakeResponse(201, {"id": 99, "name": "mac-x64-20.11.0"})])
        data = b"\x00\x01\x02\x03"

        out = self._client(session).upload_asset(release_id=7, name="mac-x64-20.11.0", data=data)

        self.assertEqual(out["id"], 99)
        call = session.calls[0]
        self.assertEqual(call["method"], "POST")
        self.assertEqual(
            call["url"],
            "https://uploads.github.com/repos/SmartThingsCommunity/cli-nexe-builds/releases/7/assets",
        )
        self.assertEqual(call["params"], {"name": "mac-x64-20.11.0"})
        self.assertEqual(call["headers"]["Content-Type"], "application/x-binary")
        self.assertEqual(call["headers"]["Content-Length"], "4")
        self.assertEqual(call["data"], data)

    def test_upload_error_status(self) -> None:
        session = FakeSession([FakeResponse(422, None, text="already_exists")])
        with self.assertRaises(GitHubApiError) as ctx:
            self._client(session).upload_asset(release_id=7, name="x", data=b"1")
        self.assertEqual(ctx.exception.status_code, 422)

    def test_unexpected_payload(self) -> None:
        for payload in ({"message": "x"}, ["not-a-release"], None):
            session = FakeSession([FakeResponse(200, payload, text="odd body")])
            with self.assertRaises(GitHubApiError) as ctx:
                self._client(session).list_releases()
            self.assertEqual(ctx.exception.status_code, 200)
            self.assertIn("odd body", str(ctx.exception))

    def test_close_only_owned_session(self) -> None:
        injected = mock.Mock()
        with GitHubReleasesClient(settings=self.settings, token="secret", session=injected):
            pass
        injected.close.assert_not_called()

        with mock.patch("nexe_builds.github.releases.requests.Session") as session_cls:
            with GitHubReleasesClient(settings=self.settings, token="secret"):
                pass
        session_cls.return_value.close.assert_called_once_with()

    def test_connection_error_is_wrapped(self) -> None:
        class BrokenSession:
            def request(self, method, url, **kwargs):
                raise requests.ConnectionError("no route to host")

        client = GitHubReleasesClient(settings=self.settings, token="secret", session=BrokenSession())
        with self.assertRaises(GitHubApiError):
            client.list_releases()


class TestLookups(unittest.TestCase):
    def test_find_release_and_asset(self) -> None:
        releases = [Release.from_api(_release(1, "5.1.0")), Release.from_api(_release(2, "5.2.0", [{"name": "a"}]))]
        rel = find_release(releases, "5.2.0")
        self.assertIsNotNone(rel)
        self.assertEqual(rel.id, 2)
        self.assertIsNotNone(find_asset(rel, "a"))
        self.assertIsNone(find_asset(rel, "A"))
        self.assertIsNone(find_release(releases, "v5.2.0"))


if __name__ == "__main__":
    unittest.main()

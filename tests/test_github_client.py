import httpx
import pytest

from firmrel.errors import ExternalToolError, ValidationError
from firmrel.gitplugin import GitHubClient

API = "https://api.github.test"


def make_client(handler, token=None):
    return GitHubClient("particle-iot", "firmware", token=token, base_url=API,
                        transport=httpx.MockTransport(handler))


class TestGitHubClient:

    @pytest.mark.asyncio
    async def test_token_is_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"name": "bug"})

        async with make_client(handler, token="secret") as client:
            assert await client.get_label("bug") == {"name": "bug"}
        assert seen["auth"] == "token secret"

    @pytest.mark.asyncio
    async def test_unknown_label(self):
        async with make_client(lambda request: httpx.Response(404, json={})) as client:
            with pytest.raises(ValidationError, match="Unknown issue label: 'feature'"):
                await client.get_label("feature")

    @pytest.mark.asyncio
    async def test_get_issue(self):
        def handler(request):
            assert request.url.path == "/repos/particle-iot/firmware/issues/42"
            return httpx.Response(200, json={"number": 42, "labels": [{"name": "bug"}]})

        async with make_client(handler) as client:
            issue = await client.get_issue(42)
        assert issue["number"] == 42

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with make_client(lambda request: httpx.Response(500, text="oops")) as client:
            with pytest.raises(ExternalToolError, match="500"):
                await client.get_issue(1)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ExternalToolError, match="GitHub request failed"):
                await client.get_issue(1)

    @pytest.mark.asyncio
    async def test_closed_pull_requests_follow_pagination(self):
        pages = {
            "1": ([{"number": 1}, {"number": 2}], f'<{API}/repos/particle-iot/firmware/pulls?state=closed&page=2>; rel="next"'),
            "2": ([{"number": 3}], None),
        }
        requests = []

        def handler(request):
            requests.append(request.url)
            page = request.url.params.get("page", "1")
            body, link = pages[page]
            headers = {"Link": link} if link else {}
            return httpx.Response(200, json=body, headers=headers)

        async with make_client(handler) as client:
            prs = await client.list_closed_pull_requests()

        assert [pr["number"] for pr in prs] == [1, 2, 3]
        assert requests[0].params["state"] == "closed"
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_list_issue_labels(self):
        def handler(request):
            return httpx.Response(200, json=[{"name": "bug"}, {"name": "internal"}])

        async with make_client(handler) as client:
            assert await client.list_issue_labels(7) == ["bug", "internal"]

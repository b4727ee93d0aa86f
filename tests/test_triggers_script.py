import argparse
from unittest.mock import MagicMock, patch

import httpx

from app.config import settings
from scripts.triggers import build_request, main


def test_build_request_list():
    method, url, payload = build_request(argparse.Namespace(command="list"))

    assert method == "get"
    assert url == f"{settings.base_url}/api/triggers"
    assert payload is None


def test_build_request_check():
    args = argparse.Namespace(command="check", project="widget")

    assert build_request(args) == (
        "post",
        f"{settings.base_url}/api/triggers/widget/check",
        None,
    )


def test_build_request_whitelist():
    args = argparse.Namespace(command="whitelist", project="widget", user="bob")

    assert build_request(args) == (
        "post",
        f"{settings.base_url}/api/triggers/widget/whitelist",
        {"user": "bob"},
    )


def test_main_success(capsys):
    with patch("scripts.triggers.httpx.Client") as MockClient:
        mock_response = MagicMock()
        mock_response.json.return_value = {"message": "Repository checked"}
        mock_client = MockClient.return_value.__enter__.return_value
        mock_client.request.return_value = mock_response

        assert main(["check", "widget"]) == 0

        call_args = mock_client.request.call_args
        assert call_args[0] == (
            "post",
            f"{settings.base_url}/api/triggers/widget/check",
        )
        assert call_args[1]["headers"] == {
            "Authorization": f"Bearer {settings.admin_token}"
        }

    assert "Repository checked" in capsys.readouterr().out


def test_main_http_error(capsys):
    with patch("scripts.triggers.httpx.Client") as MockClient:
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "not found",
            request=MagicMock(),
            response=MagicMock(status_code=404, text="No active trigger"),
        )
        MockClient.return_value.__enter__.return_value.request.return_value = (
            mock_response
        )

        assert main(["reload", "widget"]) == 1

    assert "HTTP Error 404" in capsys.readouterr().err

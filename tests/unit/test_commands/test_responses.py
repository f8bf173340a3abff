"""Tests for reply rendering."""

from ctrl_bot.commands.responses import (
    CommandResponse,
    ProjectSummary,
    help_text,
    render_project_list,
    summarize_projects,
)
from ctrl_bot.registry.models import Profile, Project, Registry


class TestHelpText:
    def test_lists_every_command(self) -> None:
        text = help_text("/ctrl")
        for usage in (
            "/ctrl help",
            "/ctrl list",
            "/ctrl create <project_name>",
            "/ctrl delete <project_name>",
            "/ctrl add <@user>",
            "/ctrl remove <@user>",
            "/ctrl github <owner/repo>",
            "/ctrl me github <github_username>",
        ):
            assert usage in text


class TestProjectList:
    """Block Kit rendering of the project list."""

    def test_empty(self) -> None:
        response = render_project_list([])
        assert response.text == "No projects yet."
        assert response.blocks is None

    def test_section_per_project(self) -> None:
        response = render_project_list(
            [
                ProjectSummary("a", "C1", "org/a", ["<@U1>"]),
                ProjectSummary("b", "C2"),
            ]
        )

        assert len(response.blocks) == 3
        assert response.blocks[0]["text"]["text"] == "Here's a list of all projects:"

        first = response.blocks[1]
        assert first["text"]["text"] == "`a` in <#C1>\nOwners: <@U1>"
        assert first["accessory"]["url"] == "https://github.com/org/a"
        assert first["accessory"]["action_id"] == "github:a"

        second = response.blocks[2]
        assert "Owners: _none_" in second["text"]["text"]
        assert "accessory" not in second

    def test_text_fallback(self) -> None:
        response = render_project_list([ProjectSummary("a", "C1")])
        assert "- a in <#C1>" in response.text


class TestSummaries:
    def test_owners_resolved_to_mentions(self) -> None:
        registry = Registry(
            projects={
                "proj": Project(
                    slack_channel="C1",
                    github_repo="org/proj",
                    project_owners=["alice", "<ghost>"],
                )
            },
            profiles={"U1": Profile(github_username="alice")},
        )

        [summary] = summarize_projects(registry)

        assert summary.name == "proj"
        assert summary.repository == "org/proj"
        assert summary.owners == ["<@U1>", "&lt;ghost&gt;"]


class TestCommandResponse:
    def test_payload_without_blocks(self) -> None:
        assert CommandResponse(text="hi").to_payload() == {
            "text": "hi",
            "response_type": "in_channel",
        }

    def test_payload_with_blocks(self) -> None:
        blocks = [{"type": "section"}]
        payload = CommandResponse(text="hi", blocks=blocks).to_payload()
        assert payload["blocks"] == blocks


class TestLargeProjectList:
    """Slack accepts at most 50 blocks per message."""

    def _summaries(self, count: int) -> list:
        return [ProjectSummary(f"p{i}", f"C{i}") for i in range(count)]

    def test_forty_nine_projects_fit(self) -> None:
        response = render_project_list(self._summaries(49))
        assert len(response.blocks) == 50
        assert all(block["type"] == "section" for block in response.blocks)

    def test_overflow_is_summarized(self) -> None:
        response = render_project_list(self._summaries(120))

        assert len(response.blocks) == 50
        assert response.blocks[-2]["text"]["text"].startswith("`p47`")
        overflow = response.blocks[-1]
        assert overflow["type"] == "context"
        assert overflow["elements"][0]["text"] == "…and 72 more."

    def test_text_fallback_lists_every_project(self) -> None:
        response = render_project_list(self._summaries(120))
        assert "- p0 in <#C0>" in response.text
        assert "- p119 in <#C119>" in response.text

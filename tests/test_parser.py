"""End-to-end tests for the Markdown front end, configuration and CLI."""

from __future__ import annotations

import sys
import textwrap

import pytest

from walkthrough.models import StructuralError, TextBlock, VerificationBlock

SAMPLE = textwrap.dedent(
    """\
    # Getting started with {product}

    Welcome to {product}.

    {type=walkthroughResource serviceName=console}
    ::: sidebar Console
    Open the console.
    :::

    {time=10}
    ## Create a project

    Projects group your work.

    {type=taskResource serviceName=editor}
    ::: sidebar Editor
    Use the editor.
    :::

    ### Open a terminal

    Log in as {user-name}.

    {type=verification}
    Does `oc whoami` print your name?

    {type=verificationSuccess}
    You are logged in.

    {type=verificationFail}
    Log in again.

    {type=taskResource serviceName=terminal}
    ::: sidebar Terminal
    Use the terminal.
    :::

    ### Create it

    Run the command.

    {time=5}
    ## Deploy

    Deploy the application.
    """
)

ATTRIBUTES = {"product": "Widgets", "user-name": "developer"}


# ── Parser tests ────────────────────────────────────────────────────


class TestParser:
    def test_document_structure(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse(SAMPLE, ATTRIBUTES)

        assert document.context == "document"
        assert document.document_title == "Getting started with Widgets"
        assert [b.context for b in document.blocks] == ["preamble", "section", "section"]

        preamble, create, deploy = document.blocks
        assert [b.context for b in preamble.blocks] == ["paragraph", "sidebar"]
        assert preamble.blocks[1].level == 0
        assert preamble.blocks[1].title == "Console"
        assert preamble.blocks[1].get_attribute("serviceName") == "console"

        assert (create.level, create.number, create.numbered) == (1, 1, True)
        assert (deploy.level, deploy.number) == (1, 2)
        assert create.title == "Create a project"
        assert create.get_attribute("time") == "10"
        assert create.parent is document

        assert [b.context for b in create.blocks] == ["paragraph", "sidebar", "section", "section"]
        step = create.blocks[2]
        assert (step.level, step.number, step.title) == (2, 1, "Open a terminal")
        assert step.parent is create
        assert step.blocks[1].get_attribute("type") == "verification"
        terminal = step.blocks[-1]
        assert (terminal.context, terminal.level, terminal.title) == ("sidebar", 2, "Terminal")

    def test_sidebar_children_are_nodes(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse(SAMPLE, ATTRIBUTES)
        panel = document.blocks[0].blocks[1]
        assert [b.context for b in panel.blocks] == ["paragraph"]
        assert panel.blocks[0].convert().strip() == "<p>Open the console.</p>"

    def test_section_convert_wraps_children(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse(SAMPLE, ATTRIBUTES)
        html = document.blocks[2].convert()
        assert html.startswith('<section class="sect1">')
        assert "Deploy" in html
        assert "<p>Deploy the application.</p>" in html

    def test_convert_is_repeatable(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse(SAMPLE, ATTRIBUTES)
        panel = document.blocks[0].blocks[1]
        assert panel.convert() == panel.convert()

    def test_doctitle_fallback(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse(
            "Intro.\n\n## Task\n\nBody.\n", {"doctitle": "Fallback"}
        )
        assert document.document_title == "Fallback"
        assert document.blocks[0].context == "preamble"

    def test_out_of_sequence_heading(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse("# T\n\n### Lonely\n\nText.\n")
        lonely = document.blocks[1]
        assert (lonely.context, lonely.level, lonely.number) == ("section", 2, 1)
        assert lonely.parent is document

    def test_nested_list_blocks(self):
        from walkthrough.parser import MarkdownDocumentParser

        document = MarkdownDocumentParser().parse("# T\n\n- one\n- two\n")
        ulist = document.blocks[0].blocks[0]
        assert ulist.context == "ulist"
        assert [b.context for b in ulist.blocks] == ["list_item", "list_item"]

    def test_code_blocks_keep_attribute_references(self):
        from walkthrough.parser import MarkdownDocumentParser

        source = textwrap.dedent(
            """\
            # T

            Hello {name}.

            ```python
            print(f"{name}")
            ```

                echo ${name}
            """
        )
        document = MarkdownDocumentParser().parse(source, {"name": "Ada"})
        paragraph, fence, indented = document.blocks[0].blocks

        assert "Hello Ada." in paragraph.convert()
        assert "{name}" in fence.convert()
        assert "Ada" not in fence.convert()
        assert "${name}" in indented.convert()
        assert [fence.context, indented.context] == ["listing", "listing"]

    def test_substitute_attributes_skips_literal_lines(self):
        from walkthrough.parser import substitute_attributes

        source = "a {name}\nb {name}\r\nc {name}"
        result = substitute_attributes(source, {"name": "x"}, {1})
        assert result == "a x\nb {name}\r\nc x"

    def test_substitute_attributes(self):
        from walkthrough.parser import substitute_attributes

        source = "Hi {name}, {missing} {type=verification}"
        result = substitute_attributes(source, {"name": "Ada", "type": "x"})
        assert result == "Hi Ada, {missing} {type=verification}"


# ── Entry point tests ───────────────────────────────────────────────


class TestParseWalkthrough:
    def test_sample_walkthrough(self):
        from walkthrough.assembler import parse_walkthrough

        walkthrough = parse_walkthrough(SAMPLE, ATTRIBUTES)

        assert walkthrough.title == "Getting started with Widgets"
        assert "Welcome to Widgets." in walkthrough.preamble
        assert "Open the console." not in walkthrough.preamble
        assert len(walkthrough.resources) == 1
        resource = walkthrough.resources[0]
        assert resource.title == "Console"
        assert resource.service_name == "console"
        assert resource.html.strip() == "<p>Open the console.</p>"

        assert [t.title for t in walkthrough.tasks] == ["1. Create a project", "2. Deploy"]
        assert [t.time for t in walkthrough.tasks] == [10, 5]
        assert walkthrough.time == 15

    def test_task_resources_and_steps(self):
        from walkthrough.assembler import parse_walkthrough

        task = parse_walkthrough(SAMPLE, ATTRIBUTES).tasks[0]

        assert [(r.title, r.service_name) for r in task.resources] == [
            ("Editor", "editor"),
            ("Terminal", "terminal"),
        ]
        intro, first, second = task.steps
        assert isinstance(intro, TextBlock)
        assert "Projects group your work." in intro.html
        assert [first.title, second.title] == ["1.1. Open a terminal", "1.2. Create it"]
        assert "Create a project" in task.html

    def test_task_steps_include_intro_text(self):
        from walkthrough.assembler import parse_walkthrough

        task = parse_walkthrough("# T\n\n## A\n\nintro text\n\n### S\n\nbody\n").tasks[0]

        assert task.steps == task.blocks
        assert isinstance(task.steps[0], TextBlock)
        assert "intro text" in task.steps[0].html
        assert task.steps[1].title == "1.1. S"

    def test_step_verification(self):
        from walkthrough.assembler import parse_walkthrough

        step = parse_walkthrough(SAMPLE, ATTRIBUTES).tasks[0].steps[1]

        assert len(step.blocks) == 2
        intro, check = step.blocks
        assert "Log in as developer." in intro.html
        assert isinstance(check, VerificationBlock)
        assert "<code>oc whoami</code>" in check.html
        assert "You are logged in." in check.success_block.html
        assert "Log in again." in check.fail_block.html
        assert all("Use the terminal." not in b.html for b in step.blocks)

    def test_numbering_disabled(self):
        from walkthrough.assembler import parse_walkthrough

        walkthrough = parse_walkthrough(SAMPLE, {**ATTRIBUTES, "sectnums": None})
        assert [t.title for t in walkthrough.tasks] == ["Create a project", "Deploy"]
        assert walkthrough.tasks[0].steps[1].title == "Open a terminal"

    def test_sectnumlevels_limits_numbering(self):
        from walkthrough.assembler import parse_walkthrough

        walkthrough = parse_walkthrough(SAMPLE, {**ATTRIBUTES, "sectnumlevels": 1})
        assert walkthrough.tasks[0].title == "1. Create a project"
        assert walkthrough.tasks[0].steps[1].title == "Open a terminal"

    def test_no_introduction(self):
        from walkthrough.assembler import parse_walkthrough

        walkthrough = parse_walkthrough("# T\n\n## Task\n\nBody.\n")
        assert walkthrough.preamble == ""
        assert [t.title for t in walkthrough.tasks] == ["1. Task"]
        assert walkthrough.time == 0

    @pytest.mark.parametrize("source", ["", "# Only a title\n"])
    def test_empty_document_raises(self, source):
        from walkthrough.assembler import parse_walkthrough

        with pytest.raises(StructuralError):
            parse_walkthrough(source)

    def test_idempotent(self):
        from walkthrough.assembler import parse_walkthrough

        assert parse_walkthrough(SAMPLE, ATTRIBUTES) == parse_walkthrough(SAMPLE, ATTRIBUTES)

    def test_custom_sidebar_container(self, tmp_path):
        from walkthrough.assembler import parse_walkthrough
        from walkthrough.config import WalkthroughConfig

        overlay = tmp_path / "overlay.yaml"
        overlay.write_text("markdown:\n  sidebar_container: aside\n", encoding="utf-8")
        config = WalkthroughConfig(overlay_path=overlay)

        source = textwrap.dedent(
            """\
            # T

            {type=walkthroughResource serviceName=docs}
            ::: aside Docs
            Read the docs.
            :::
            """
        )
        walkthrough = parse_walkthrough(source, config=config)
        assert [r.title for r in walkthrough.resources] == ["Docs"]


# ── Configuration tests ─────────────────────────────────────────────


class TestConfig:
    def test_defaults(self):
        from walkthrough.config import WalkthroughConfig

        config = WalkthroughConfig()
        assert config.markdown_preset == "commonmark"
        assert config.sidebar_container == "sidebar"
        assert "table" in config.enabled_rules
        assert config.attributes() == {"sectnums": "", "sectnumlevels": "3"}

    def test_overlay_is_deep_merged(self, tmp_path):
        from walkthrough.config import WalkthroughConfig

        overlay = tmp_path / "overlay.yaml"
        overlay.write_text(
            "markdown:\n  sidebar_container: aside\nattributes:\n  product: Widgets\n",
            encoding="utf-8",
        )
        config = WalkthroughConfig(overlay_path=overlay)
        assert config.sidebar_container == "aside"
        assert config.markdown_preset == "commonmark"
        assert config.attributes()["product"] == "Widgets"
        assert "sectnums" in config.attributes()

    def test_attribute_overrides(self):
        from walkthrough.config import WalkthroughConfig

        attrs = WalkthroughConfig().attributes({"sectnums": None, "flag": True, "n": 2})
        assert "sectnums" not in attrs
        assert attrs["flag"] == ""
        assert attrs["n"] == "2"

    def test_missing_config_raises(self, tmp_path):
        from walkthrough.config import WalkthroughConfig

        with pytest.raises(FileNotFoundError):
            WalkthroughConfig(config_path=tmp_path / "nope.yaml")

    def test_non_mapping_config_raises(self, tmp_path):
        from walkthrough.config import WalkthroughConfig

        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="YAML mapping"):
            WalkthroughConfig(config_path=path)


# ── CLI tests ───────────────────────────────────────────────────────


class TestCli:
    def test_parse_attributes(self):
        from main import _parse_attributes

        assert _parse_attributes(["sectnums", "user-name=dev", "toc!"]) == {
            "sectnums": "",
            "user-name": "dev",
            "toc": None,
        }

    def test_parse_attributes_rejects_empty_name(self):
        from main import _parse_attributes

        with pytest.raises(ValueError):
            _parse_attributes(["=value"])

    def test_main_prints_summary(self, tmp_path, monkeypatch, capsys):
        import main

        source = tmp_path / "walkthrough.md"
        source.write_text(SAMPLE, encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(
            sys, "argv", ["walkthrough", str(source), "-a", "product=Widgets"]
        )

        main.main()

        out = capsys.readouterr().out
        assert "Getting started with Widgets" in out
        assert "Tasks          : 2" in out
        assert "Time (minutes) : 15" in out

    def test_main_missing_file_exits(self, tmp_path, monkeypatch):
        import main

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(sys, "argv", ["walkthrough", str(tmp_path / "missing.md")])
        with pytest.raises(SystemExit) as exc_info:
            main.main()
        assert exc_info.value.code == 1

from unittest.mock import MagicMock

import pytest

from recruitflow.context.models import ContextBundle, ContextItem, ContextSection
from recruitflow.database.models import (
    AttachmentRecord,
    CandidateRecord,
    ReferenceFileRecord,
    StagePromptRecord,
    TemplateStageRecord,
)
from recruitflow.inference.exceptions import InferenceError
from recruitflow.inference.models import InferenceResponse
from recruitflow.services.exceptions import NotFoundError, ValidationError
from recruitflow.services.prompt_executor import PromptExecutor


def _make_executor(
    template_id: str | None = "t1",
) -> tuple[PromptExecutor, dict[str, MagicMock]]:
    mocks = {
        "candidate_repo": MagicMock(),
        "template_repo": MagicMock(),
        "attachment_repo": MagicMock(),
        "aggregator": MagicMock(),
        "extractor": MagicMock(),
        "storage": MagicMock(),
        "inference_client": MagicMock(),
    }
    mocks["candidate_repo"].find_by_id.return_value = CandidateRecord(
        id="c1", name="Ann Lee", pipeline_stage="homework", template_id=template_id
    )
    mocks["template_repo"].find_prompt.return_value = StagePromptRecord(
        id="p1", stage_id="s1", name="Code review", instructions="Score the solution 1-5."
    )
    mocks["template_repo"].find_stage_by_name.return_value = TemplateStageRecord(
        id="s1",
        template_id="t1",
        name="homework",
        display_name="Take-home task",
        system_prompt="You are a staff engineer.",
    )
    mocks["template_repo"].list_reference_files.return_value = []
    mocks["aggregator"].build_from_selection.return_value = ContextBundle(
        [ContextSection(heading="Stage: homework", items=[ContextItem("solution.py", "code")])]
    )
    mocks["storage"].put.return_value = "/files/review.md"
    mocks["attachment_repo"].insert.side_effect = lambda new: AttachmentRecord(
        id="out-1", **vars(new)
    )
    mocks["inference_client"].complete.return_value = InferenceResponse(
        text="Score: 4", model="gpt-test"
    )
    return PromptExecutor(max_tokens=32000, **mocks), mocks


class TestExecute:
    def test_saves_output_with_back_references(self) -> None:
        executor, mocks = _make_executor()

        result = executor.execute("c1", "homework", "p1", ["a1"])

        assert result.content == "Score: 4"
        assert result.attachment.id == "out-1"
        new = mocks["attachment_repo"].insert.call_args[0][0]
        assert new.file_name == "Code review_Ann Lee.md"
        assert new.type == "ai_analysis"
        assert new.ai_generated is True
        assert new.tags == ["AI analysis", "Code review"]
        assert new.pipeline_stage == "Take-home task"
        assert new.stage_id == "s1"
        assert new.source_prompt_id == "p1"
        assert new.prompt_name_snapshot == "Code review"
        assert mocks["storage"].put.call_args.kwargs["add_random_suffix"] is True

    def test_system_prompt_holds_stage_prompt_then_instructions(self) -> None:
        executor, mocks = _make_executor()

        executor.execute("c1", "homework", "p1", ["a1"])

        kwargs = mocks["inference_client"].complete.call_args.kwargs
        system_prompt = kwargs["system_prompt"]
        assert system_prompt.startswith("You are a staff engineer.")
        assert system_prompt.endswith("# Task instructions\n\nScore the solution 1-5.")
        assert kwargs["max_tokens"] == 32000

    def test_user_message_orders_context_before_closing(self) -> None:
        executor, mocks = _make_executor()
        mocks["template_repo"].list_reference_files.return_value = [
            ReferenceFileRecord(
                id="r1",
                prompt_id="p1",
                file_name="rubric.md",
                blob_url="/files/rubric.md",
                mime_type="text/markdown",
            )
        ]
        mocks["extractor"].extract.return_value = "Rubric body"

        executor.execute("c1", "homework", "p1", ["a1"])

        (block,) = mocks["inference_client"].complete.call_args[0][0]
        text = block.text
        assert text.index("## Reference material") < text.index("## Candidate material: Ann Lee")
        assert text.index("## Candidate material: Ann Lee") < text.index("## Stage: homework")
        assert "### rubric.md\n\nRubric body" in text
        assert text.rstrip().endswith("Do not leave out any part.")
        assert "Score the solution" not in text

    def test_no_template_uses_plain_stage(self) -> None:
        executor, mocks = _make_executor(template_id=None)

        executor.execute("c1", "homework", "p1", [])

        new = mocks["attachment_repo"].insert.call_args[0][0]
        assert new.pipeline_stage == "homework"
        assert new.stage_id is None
        assert "system_prompt" in mocks["inference_client"].complete.call_args.kwargs
        mocks["template_repo"].find_stage_by_name.assert_not_called()
        mocks["aggregator"].build_from_selection.assert_called_once_with("c1", [])

    def test_missing_prompt_id_rejected_before_io(self) -> None:
        executor, mocks = _make_executor()

        with pytest.raises(ValidationError, match="prompt_id and stage are required"):
            executor.execute("c1", "homework", "")
        mocks["candidate_repo"].find_by_id.assert_not_called()

    def test_unknown_prompt_propagates(self) -> None:
        executor, mocks = _make_executor()
        mocks["template_repo"].find_prompt.side_effect = NotFoundError("Prompt p9 not found")

        with pytest.raises(NotFoundError):
            executor.execute("c1", "homework", "p9")
        mocks["inference_client"].complete.assert_not_called()

    def test_empty_reply_saves_nothing(self) -> None:
        executor, mocks = _make_executor()
        mocks["inference_client"].complete.return_value = InferenceResponse(text="", model="m")

        with pytest.raises(InferenceError):
            executor.execute("c1", "homework", "p1", ["a1"])
        mocks["storage"].put.assert_not_called()
        mocks["attachment_repo"].insert.assert_not_called()

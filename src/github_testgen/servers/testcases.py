from collections.abc import Sequence
from logging import Logger, getLogger

from github_testgen.sampling.extract import extract_code, extract_summaries
from github_testgen.sampling.generator import TextGenerator
from github_testgen.sampling.prompts import build_code_prompt, build_summary_prompt
from github_testgen.servers.models.testcases import CodeResult, SourceFile, SummaryResult
from github_testgen.servers.shared.errors import (
    GenerationFailedError,
    MissingRequiredDataError,
    NoFilesProvidedError,
    TextGeneratorNotConfiguredError,
)


class TestCaseServer:
    """Turns selected source files into test case summaries and test code."""

    __test__ = False

    text_generator: TextGenerator | None
    logger: Logger

    def __init__(self, text_generator: TextGenerator | None, logger: Logger | None = None):
        self.text_generator = text_generator
        self.logger = logger or getLogger(__name__)

    async def _complete(self, action: str, prompt: str) -> str:
        if self.text_generator is None:
            raise TextGeneratorNotConfiguredError

        try:
            return await self.text_generator.complete(prompt)
        except Exception as e:
            self.logger.exception(f"Model call failed to {action}: {e}")
            raise GenerationFailedError(action=action, cause=e) from e

    async def summarize(self, files: Sequence[SourceFile]) -> SummaryResult:
        """Ask the model for test case summaries of the files and extract them from the reply.

        Raises:
            NoFilesProvidedError: If no files are provided. The model is not called.
            GenerationFailedError: If the model call fails.
        """

        if not files:
            raise NoFilesProvidedError

        raw_text: str = await self._complete(action="generate test summaries", prompt=build_summary_prompt(files=files))

        summaries: list[str] = extract_summaries(raw_text)

        if not summaries:
            self.logger.warning(f"No summaries could be extracted from a reply of {len(raw_text)} characters.")

        self.logger.info(f"Extracted {len(summaries)} test case summaries for {len(files)} files.")

        return SummaryResult(summaries=summaries, raw_text=raw_text)

    async def generate_code(self, summary: str | None, files: Sequence[SourceFile]) -> CodeResult:
        """Ask the model for test code implementing the summary (or the full raw summary text).

        Raises:
            MissingRequiredDataError: If the summary is blank or no files are provided.
            GenerationFailedError: If the model call fails.
        """

        missing: list[str] = []

        if not summary or not summary.strip():
            missing.append("summary")

        if not files:
            missing.append("files")

        if missing or summary is None:
            raise MissingRequiredDataError(missing=missing)

        raw_text: str = await self._complete(action="generate test code", prompt=build_code_prompt(summary=summary, files=files))

        test_code: str = extract_code(raw_text)

        if not test_code.strip():
            self.logger.warning("The model reply did not contain any test code.")

        return CodeResult(test_code=test_code)

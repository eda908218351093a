from collections.abc import Sequence
from textwrap import dedent
from typing import Self

import yaml
from pydantic import BaseModel, Field

from github_testgen.servers.models.testcases import SourceFile


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section}"


WHO_YOU_ARE = PromptSection(
    title="Who you are",
    level=1,
    section="""
You are a meticulous software test engineer. You read source code closely and design tests that exercise its
behaviour, its edge cases and its failure modes.
""",
)

DEEPLY_ROOTED = PromptSection(
    title="Deeply Rooted",
    level=1,
    section="""
Your work should always be entirely rooted in the provided code, not invented or made up. Only test functions,
classes and behaviour that appear in the provided files.
""",
)

SUMMARY_RESPONSE_FORMAT = PromptSection(
    title="Response Format",
    level=1,
    section="""
Provide each test case summary as a separate bullet point. Start every bullet with `* **Test Case N:**` where N
counts up from 1, followed by a short title and a description of the inputs, the action and the expected outcome.
""",
)

CODE_RESPONSE_FORMAT = PromptSection(
    title="Response Format",
    level=1,
    section="""
At the top of the generated test code, include the test case summary (in short) as a comment.
Then provide only the test code without any explanations, inside a single fenced code block.
""",
)


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        text_block = "\n".join([dedent(text) for text in text])

        self.sections.append(PromptSection(title=title, level=level, section=text_block))

        return self

    def add_code_section(self, title: str, code: str, language: str, level: int = 1) -> Self:
        code_block = f"```{language}\n{code}\n```"

        self.sections.append(PromptSection(title=title, level=level, section=code_block))

        return self

    def add_yaml_section(self, title: str, obj: dict | BaseModel | list, preamble: str | None = None, level: int = 1) -> Self:
        yaml_text: str

        if isinstance(obj, BaseModel):
            yaml_text = yaml.safe_dump(obj.model_dump(), sort_keys=False)
        elif isinstance(obj, dict):
            yaml_text = yaml.safe_dump(obj, sort_keys=False)
        else:
            dumped_objs = [item.model_dump() if isinstance(item, BaseModel) else item for item in obj]
            yaml_text = yaml.safe_dump(dumped_objs, sort_keys=False)

        yaml_block: str = preamble or ""

        yaml_block += f"""
```yaml
{yaml_text}```"""

        self.sections.append(PromptSection(title=title, level=level, section=yaml_block))

        return self

    def add_prompt_section(self, section: PromptSection) -> Self:
        self.sections.append(section)
        return self

    def add_source_files(self, files: Sequence[SourceFile], level: int = 1) -> Self:
        _ = self.add_yaml_section(
            title="Code files",
            obj=[{"filename": file.filename, "language": file.language} for file in files],
            preamble="The following code files are provided:",
            level=level,
        )

        for file in files:
            _ = self.add_code_section(title=f"File: {file.filename}", code=file.content, language=file.language, level=level + 1)

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)


def build_summary_prompt(files: Sequence[SourceFile]) -> str:
    return (
        PromptBuilder()
        .add_prompt_section(WHO_YOU_ARE)
        .add_prompt_section(DEEPLY_ROOTED)
        .add_text_section(title="Task", text="Generate comprehensive test case summaries for the following code files.")
        .add_source_files(files)
        .add_prompt_section(SUMMARY_RESPONSE_FORMAT)
        .render_text()
    )


def build_code_prompt(summary: str, files: Sequence[SourceFile]) -> str:
    return (
        PromptBuilder()
        .add_prompt_section(WHO_YOU_ARE)
        .add_prompt_section(DEEPLY_ROOTED)
        .add_text_section(
            title="Task",
            text=f'Generate a complete, runnable test code implementation for the following test case summary:\n\n"{summary}"',
        )
        .add_source_files(files)
        .add_prompt_section(CODE_RESPONSE_FORMAT)
        .render_text()
    )

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SourceFile(BaseModel):
    """A selected file handed to the model as context."""

    filename: str = Field(description="The name of the file.")
    language: str = Field(default="", description="The language tag of the file, usually its extension.")
    content: str = Field(default="", description="The text content of the file.")


class SummariesRequest(BaseModel):
    files: list[SourceFile] = Field(default_factory=list, description="The files to summarize test cases for.")


class SummaryResult(BaseModel):
    """The test case summaries extracted from a model reply, along with the reply itself."""

    model_config = ConfigDict(populate_by_name=True)

    summaries: list[str] = Field(default_factory=list, description="The extracted summaries, in model output order.")
    raw_text: str = Field(alias="rawText", description="The full model reply.")


class CodeRequest(BaseModel):
    summary: str | None = Field(default=None, description="A single summary, or the full raw summary text.")
    files: list[SourceFile] = Field(default_factory=list, description="The files the tests are generated for.")


class CodeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    test_code: str = Field(alias="testCode", description="The extracted test code.")


class PullRequestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo: str | None = Field(default=None, description="The owner/name of the repository.")
    test_code: str | None = Field(default=None, alias="testCode", description="The test code to commit.")
    language: str | None = Field(default=None, description="The language code used to choose the test file suffix.")
    test_file_name_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("testFileNameHint", "testFileName", "test_file_name_hint"),
        description="The base name of the test file.",
    )


class PullRequestResponse(BaseModel):
    url: str = Field(description="The web URL of the pull request.")

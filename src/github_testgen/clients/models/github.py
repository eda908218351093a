from pathlib import PurePosixPath
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field

from github_testgen.clients.errors.github import InvalidRepositoryError

DEFAULT_TEST_FILE_NAME = "generated_tests"
DEFAULT_TEST_DIRECTORY = "tests"

TEST_FILE_SUFFIXES: dict[str, str] = {
    "js": ".test.js",
    "ts": ".test.ts",
    "py": "_test.py",
    "java": "Test.java",
    "go": "_test.go",
    "rb": "_spec.rb",
    "php": "Test.php",
    "cs": "Tests.cs",
}
DEFAULT_TEST_FILE_SUFFIX = TEST_FILE_SUFFIXES["js"]


def suffix_for_language(language: str | None) -> str:
    """Return the test file suffix for a language code, falling back to the JavaScript suffix."""

    if language is None:
        return DEFAULT_TEST_FILE_SUFFIX

    return TEST_FILE_SUFFIXES.get(language.lower(), DEFAULT_TEST_FILE_SUFFIX)


def file_name_from_hint(file_name_hint: str | None) -> str:
    """Reduce a caller-supplied hint to a bare file name. Directory parts are dropped."""

    name: str = PurePosixPath((file_name_hint or "").replace("\\", "/")).name.strip()

    if name in ("", ".", ".."):
        return DEFAULT_TEST_FILE_NAME

    return name


def build_test_file_path(language: str | None, file_name_hint: str | None = None) -> str:
    return f"{DEFAULT_TEST_DIRECTORY}/{file_name_from_hint(file_name_hint)}{suffix_for_language(language)}"


def file_extension(name: str) -> str:
    return name.rsplit(".", 1)[-1]


class RepositoryRef(BaseModel):
    """The owner/name address of a repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="The owner of the repository.")
    name: str = Field(description="The name of the repository.")

    @classmethod
    def parse(cls, full_name: str | None) -> Self:
        if not full_name or "/" not in full_name:
            raise InvalidRepositoryError(repository=full_name)

        owner, name = full_name.split("/", 1)

        if not owner or not name or "/" in name:
            raise InvalidRepositoryError(repository=full_name)

        return cls(owner=owner, name=name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


class Identity(BaseModel):
    """An authenticated GitHub user and the access token issued for them."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="The id of the user.")
    login: str = Field(description="The login of the user.")
    name: str | None = Field(default=None, description="The display name of the user.")
    avatar_url: str | None = Field(default=None, description="The avatar URL of the user.")
    html_url: str | None = Field(default=None, description="The profile URL of the user.")
    access_token: str = Field(exclude=True, repr=False, description="The OAuth access token of the user.")

    @classmethod
    def from_user(cls, user: Any, access_token: str) -> Self:  # pyright: ignore[reportAny]
        return cls(
            id=user.id,
            login=user.login,
            name=user.name,
            avatar_url=user.avatar_url,
            html_url=user.html_url,
            access_token=access_token,
        )


class RepositorySummary(BaseModel):
    """The name and full name of a repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the repository.")
    full_name: str = Field(description="The owner/name of the repository.")

    @classmethod
    def from_repository(cls, repository: Any) -> Self:  # pyright: ignore[reportAny]
        return cls(name=repository.name, full_name=repository.full_name)


class DirectoryFile(BaseModel):
    """A file entry of a directory listing."""

    name: str = Field(description="The name of the file.")
    path: str = Field(description="The path of the file.")
    type: Literal["file"] = Field(default="file", description="The type of the entry.")
    size: int = Field(default=0, description="The size of the file in bytes.")
    extension: str = Field(description="The extension of the file.")
    download_url: str | None = Field(default=None, description="The raw content URL of the file.")

    @classmethod
    def from_content_item(cls, content_item: Any) -> Self:  # pyright: ignore[reportAny]
        return cls(
            name=content_item.name,
            path=content_item.path,
            size=content_item.size,
            extension=file_extension(content_item.name),
            download_url=content_item.download_url,
        )


class DirectoryFolder(BaseModel):
    """A folder entry of a directory listing."""

    name: str = Field(description="The name of the folder.")
    path: str = Field(description="The path of the folder.")
    type: Literal["dir"] = Field(default="dir", description="The type of the entry.")

    @classmethod
    def from_content_item(cls, content_item: Any) -> Self:  # pyright: ignore[reportAny]
        return cls(name=content_item.name, path=content_item.path)


class DirectoryListing(BaseModel):
    """The files and folders at one path of a repository, on its default branch."""

    model_config = ConfigDict(populate_by_name=True)

    files: list[DirectoryFile] = Field(default_factory=list, description="The files at the path.")
    folders: list[DirectoryFolder] = Field(default_factory=list, description="The folders at the path.")
    default_branch: str = Field(alias="defaultBranch", description="The default branch of the repository.")

    @classmethod
    def from_content_items(cls, content_items: list[Any], default_branch: str) -> Self:
        files: list[DirectoryFile] = [DirectoryFile.from_content_item(item) for item in content_items if item.type == "file"]
        folders: list[DirectoryFolder] = [DirectoryFolder.from_content_item(item) for item in content_items if item.type == "dir"]

        return cls(files=files, folders=folders, default_branch=default_branch)


class GitReference(BaseModel):
    """A git reference."""

    name: str = Field(description="The name of the reference.")
    sha: str = Field(description="The SHA of the reference.")
    ref_type: str = Field(description="The type of the reference.")

    @classmethod
    def from_git_ref(cls, git_ref: Any) -> Self:  # pyright: ignore[reportAny]
        return cls(name=git_ref.ref, sha=git_ref.object_.sha, ref_type=git_ref.object_.type)


class PullRequestResult(BaseModel):
    """A pull request opened with generated test code."""

    url: str = Field(description="The web URL of the pull request.")
    branch: str = Field(description="The branch the pull request was opened from.")
    path: str = Field(description="The path of the committed test file.")

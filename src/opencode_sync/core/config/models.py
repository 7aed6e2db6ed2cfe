"""
Configuration data models for opencode-sync.

These models define the structure of opencode-sync.jsonc, with validation
and type safety via Pydantic. Field aliases match the camelCase keys used
in the file.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RepoConfig(BaseModel):
    """
    Identity of the shared sync repository.

    Either `owner` + `name` (a GitHub repository) or a direct clone `url`.
    """

    model_config = ConfigDict(extra="ignore")

    owner: Optional[str] = Field(default=None, description="Repository owner (user or org)")
    name: Optional[str] = Field(default=None, description="Repository name")
    url: Optional[str] = Field(default=None, description="Direct clone URL")
    branch: Optional[str] = Field(
        default=None,
        description="Branch to sync (defaults to the clone's current branch)",
    )

    @property
    def full_name(self) -> Optional[str]:
        """owner/name, when both parts are set."""
        if self.owner and self.name:
            return f"{self.owner}/{self.name}"
        return None


class SyncConfig(BaseModel):
    """
    Per-machine sync configuration.

    Example:
        >>> config = SyncConfig(repo=RepoConfig(owner="acme", name="cfg"))
        >>> config.include_secrets
        False
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    repo: Optional[RepoConfig] = Field(
        default=None,
        description="Shared repository identity",
    )
    include_secrets: bool = Field(
        default=False,
        alias="includeSecrets",
        description="Sync auth files and extra secret paths (requires a private repo)",
    )
    extra_secret_paths: list[str] = Field(
        default_factory=list,
        alias="extraSecretPaths",
        description="Additional secret files to sync when secrets are enabled",
    )
    local_repo_path: Optional[str] = Field(
        default=None,
        alias="localRepoPath",
        description="Where to keep the local clone (defaults to the data dir)",
    )

    def to_document(self) -> dict:
        """Serialize using the on-disk (camelCase) key names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class InitOptions(BaseModel):
    """Options accepted by the init flow."""

    repo: Optional[str] = Field(default=None, description="owner/name or a clone URL")
    owner: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    branch: Optional[str] = None
    include_secrets: bool = False
    create: bool = Field(default=False, description="Create the repo with gh first")
    private: bool = Field(default=True, description="Visibility used when creating")
    extra_secret_paths: list[str] = Field(default_factory=list)
    local_repo_path: Optional[str] = None

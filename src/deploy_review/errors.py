from __future__ import annotations


class DeployReviewError(RuntimeError):
    """Base class for every fatal error of a deploy-review run."""


class NotAGitRepository(DeployReviewError):
    pass


class SameRevisions(DeployReviewError):
    pass


class DirtyWorkingTree(DeployReviewError):
    def __init__(self, files: list[str]) -> None:
        self.files = list(files)
        lines = ["Uncommitted file exists. stash or commit uncommitted files.", *self.files]
        super().__init__("\n".join(lines))


class MissingDeliveryTarget(DeployReviewError):
    pass


class RevisionNotFound(DeployReviewError):
    def __init__(self, label: str, repo_path: str, detail: str = "") -> None:
        self.label = label
        self.repo_path = repo_path
        msg = f"revision {label!r} not found in {repo_path}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class UnrecognizedRemoteFormat(DeployReviewError):
    def __init__(self, remote_url: str) -> None:
        self.remote_url = remote_url
        super().__init__(f"unrecognized remote url: {remote_url!r}")


class NoCommitsInRange(DeployReviewError):
    def __init__(self, target: str, source: str) -> None:
        self.target = target
        self.source = source
        super().__init__(f'There is no commits between "{target}" and "{source}"')


class DeliveryFailed(DeployReviewError):
    pass


class ConfigAlreadyExists(DeployReviewError):
    pass


class ConfigNotFound(DeployReviewError):
    pass


class InvalidConfigKey(DeployReviewError):
    pass

"""Package impact aggregation.

Attributes each commit to the workspace members whose directories contain
at least one of its changed files, and folds the commits' release types
into one recommendation per package. The fold is a running maximum, so a
package's release type never goes down as more commits are added.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import CommitRecord, PackageImpact, WorkspaceMember
from .workspace import member_for_path


def affected_members(
    commit: CommitRecord, members: Sequence[WorkspaceMember]
) -> list[WorkspaceMember]:
    """Members owning at least one file changed by commit, in member order.

    Each file belongs to at most one member (see ``member_for_path``), so a
    file under nested members counts once.
    """
    owners = {
        member.relative_path
        for member in (member_for_path(members, f) for f in commit.changed_files)
        if member is not None
    }
    return [member for member in members if member.relative_path in owners]


def aggregate(
    commits: Iterable[CommitRecord], members: Sequence[WorkspaceMember]
) -> list[PackageImpact]:
    """Compute per-package release recommendations.

    Args:
        commits: Classified commits, oldest first.
        members: Workspace members to attribute commits to.

    Returns:
        One PackageImpact per member with at least one attributed commit,
        in member order.
    """
    # Every member starts at patch with no commits; untouched ones are
    # dropped at the end
    impacts = {
        member.relative_path: PackageImpact(
            package_name=member.name, package_path=member.relative_path
        )
        for member in members
    }

    for commit in commits:
        for member in affected_members(commit, members):
            impact = impacts[member.relative_path]
            impact.commits.append(commit)
            impact.release_type = max(impact.release_type, commit.release_type)

    return [impact for impact in impacts.values() if impact.commits]


def summarize(
    commits: Iterable[CommitRecord], member: WorkspaceMember
) -> list[PackageImpact]:
    """Recommendation for a single-package repository.

    Every commit in the range belongs to the one package, wherever its
    files live.
    """
    impact = PackageImpact(package_name=member.name, package_path=member.relative_path)
    for commit in commits:
        impact.commits.append(commit)
        impact.release_type = max(impact.release_type, commit.release_type)
    return [impact] if impact.commits else []

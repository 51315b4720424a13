"""Command line interface for the git plus tool."""

from pathlib import Path
from typing import List, Optional, Tuple
import argparse
import logging
import os
import sys

from .core.config import GitPlusConfig
from .core.state import FileSessionStore
from .core.types import GitPlusError, NoActiveSessionError
from .git.github import GitHubCLI
from .git.operations import GitOperations
from .workflows.branches import BranchWorkflow, RECREATE, SWITCH, CANCEL
from .workflows.commits import CommitWorkflow, SQUASH_CANDIDATES
from .workflows.session import SessionWorkflow
from .workflows.stash import StashCleanup
from .workflows.tags import TagWorkflow, MAJOR, MINOR, PATCH, BUMP_CHOICES, parse_version
from .workflows.worktree import WorktreeWorkflow

logger = logging.getLogger(__name__)

PROG = "git-plus"

# Commands whose unknown options are handed to git or gh unchanged
PASSTHROUGH_COMMANDS = ('amend', 'pr-merge')


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def create_argument_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        prog=prog or PROG,
        description='Git Plus - shortcuts for everyday git and GitHub workflows',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s pause main              # Stash work and switch to main
  %(prog)s resume                  # Return to the paused branch and restore work
  %(prog)s pr-checkout 123         # Stash work and check out PR #123
  %(prog)s new-tag feature --push  # Create and push the next minor tag
  %(prog)s squash 3 -m "Add login" # Squash the last 3 commits into one
  %(prog)s pr-merge 123 --squash   # Squash-merge PR #123 and delete its branch

Installed as git-<command> (e.g. git-pause) each command also runs as
'git <command>'.

Environment Variables:
  GIT_PLUS_HOME        Directory for the pause session (default: ~/.git-plus)
  GIT_PLUS_KEEP_STASH  Set to leave the stash in place when a switch fails
  GIT_PLUS_VERBOSE     Set to enable debug logging
        """
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--state-dir',
        type=Path,
        help='Directory for the pause session file (default: ~/.git-plus)',
        metavar='DIR'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    pause = subparsers.add_parser(
        'pause', help='Stash uncommitted work and switch to another branch')
    pause.add_argument('branch', help='Branch to switch to')
    add_keep_stash_argument(pause)

    subparsers.add_parser(
        'resume', help='Return to the paused branch and restore stashed work')

    pr_checkout = subparsers.add_parser(
        'pr-checkout', help='Stash uncommitted work and check out a pull request')
    pr_checkout.add_argument(
        'pr_number', nargs='?',
        help='Pull request number (default: the latest open pull request)')
    add_keep_stash_argument(pr_checkout)

    subparsers.add_parser(
        'stash-cleanup', help='Drop stashes that duplicate a newer stash')

    new_tag = subparsers.add_parser(
        'new-tag', help='Create the next semantic version tag')
    new_tag.add_argument(
        'type', nargs='?', type=str.lower, choices=BUMP_CHOICES, metavar='TYPE',
        help='major, minor or patch (aliases: m, n, p, feature, f, bug, b, fix, breaking)')
    new_tag.add_argument(
        '--message', '-m',
        help='Tag message (creates an annotated tag)')
    new_tag.add_argument(
        '--push', action='store_true',
        help='Push the tag to the remote after creating it')
    new_tag.add_argument(
        '--dry-run', action='store_true',
        help='Show the next version without creating it')

    newbranch = subparsers.add_parser(
        'newbranch', help='Create a branch, or recreate/switch if it exists')
    newbranch.add_argument('branch', help='Branch name')

    subparsers.add_parser(
        'delete-local-branches', help='Delete merged local branches')

    subparsers.add_parser(
        'undo-last-commit', help='Undo the last commit, keeping its changes staged')

    subparsers.add_parser(
        'amend', help='Amend the last commit; other options go to git commit --amend')

    squash = subparsers.add_parser(
        'squash', help='Squash the most recent commits into one')
    squash.add_argument(
        'count', nargs='?', type=int,
        help='Number of commits to squash (default: choose interactively)')
    squash.add_argument(
        '--message', '-m',
        help='Message of the squashed commit (default: prompt)')

    subparsers.add_parser(
        'pr-merge',
        help='Merge a pull request with gh (merge commit, branch deleted)',
        description='Merge the pull request for the current branch, or the given '
                    'PR number. Other options go to gh pr merge unchanged; '
                    '--merge and --delete-branch are added unless overridden.')

    reset_tag = subparsers.add_parser(
        'reset-tag', help='Move a tag to HEAD, locally and on the remote')
    reset_tag.add_argument('tag', help='Tag name')
    reset_tag.add_argument(
        '--no-push', dest='push', action='store_false',
        help='Only move the local tag')

    subparsers.add_parser(
        'recent', help='Switch to one of the recently committed branches')

    subparsers.add_parser(
        'back', help='Return to the previous branch or tag')

    subparsers.add_parser(
        'worktree-list', help='List worktrees')

    worktree_new = subparsers.add_parser(
        'worktree-new', help='Create a worktree for a branch next to this repository')
    worktree_new.add_argument('branch', help='Branch name')
    worktree_new.add_argument(
        '--base', metavar='BRANCH',
        help='Start point for a new branch (default: current HEAD)')

    worktree_delete = subparsers.add_parser(
        'worktree-delete', help='Remove a worktree by path or branch')
    worktree_delete.add_argument('target', help='Worktree path or branch name')
    worktree_delete.add_argument(
        '--force', action='store_true',
        help='Remove even with uncommitted changes')

    return parser


def add_keep_stash_argument(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--keep-stash-on-failure', action='store_true',
        help='Leave the stash in place if switching branch fails '
             '(default: pop it back)')


def parse_arguments(parser: argparse.ArgumentParser, args: List[str]) -> argparse.Namespace:
    """Parse args, keeping unknown options only for commands that pass them on."""
    parsed_args, extra_args = parser.parse_known_args(args)
    if extra_args and parsed_args.command not in PASSTHROUGH_COMMANDS:
        parser.error(f"unrecognized arguments: {' '.join(extra_args)}")
    parsed_args.extra_args = extra_args
    return parsed_args


def split_pr_number(extra_args: List[str]) -> Tuple[Optional[str], List[str]]:
    """Take a leading PR number (123 or #123) off the pass-through arguments."""
    if extra_args and extra_args[0].lstrip('#').isdigit():
        return extra_args[0].lstrip('#'), extra_args[1:]
    return None, list(extra_args)


def command_names(parser: Optional[argparse.ArgumentParser] = None) -> List[str]:
    """Names of all subcommands."""
    parser = parser or create_argument_parser()
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return list(action.choices)
    return []


def resolve_invocation(argv0: str, args: List[str]) -> List[str]:
    """Insert the subcommand implied by a git-<command> executable name."""
    name = os.path.basename(argv0)
    if name.lower().endswith('.exe'):
        name = name[:-4]
    if name.startswith('git-') and name != PROG:
        command = name[len('git-'):]
        if command in command_names():
            return [command] + list(args)
    return list(args)


def confirm(prompt: str, default: bool = False) -> bool:
    """Ask a yes/no question. Empty input or end of input means default."""
    suffix = "(Y/n)" if default else "(y/N)"
    try:
        response = input(f"{prompt} {suffix}: ")
    except EOFError:
        print()
        return default
    response = response.strip().lower()
    if not response:
        return default
    return response in ('y', 'yes')


def choose_branch_action(branch: str) -> str:
    """Ask what to do with an existing branch."""
    try:
        response = input(
            f"Branch {branch} already exists. [r]ecreate/[s]witch/[c]ancel (r/s/c): ")
    except EOFError:
        print()
        return CANCEL
    response = response.strip().lower()
    if response in ('r', 'recreate'):
        return RECREATE
    if response in ('s', 'switch'):
        return SWITCH
    return CANCEL


def choose_bump(current_tag: str) -> str:
    """Ask which part of the version to bump. Defaults to patch."""
    version = parse_version(current_tag)
    print("\nSelect the type of the new tag:")
    print(f"  [1] major - {version.bump(MAJOR).tag()} (breaking changes)")
    print(f"  [2] minor - {version.bump(MINOR).tag()} (new features)")
    print(f"  [3] patch - {version.bump(PATCH).tag()} (bug fixes)")
    try:
        response = input("Choice (1-3): ").strip()
    except EOFError:
        response = ""
    choices = {'1': MAJOR, '2': MINOR, '3': PATCH}
    if response not in choices:
        print("Invalid choice, using patch.")
    return choices.get(response, PATCH)


def choose_squash_count(commits) -> int:
    """Ask how many of the listed commits to squash. 0 means cancel."""
    print("Recent commits:")
    for number, commit in enumerate(commits, 1):
        print(f"  {number}. {commit.short_commit} {commit.subject}")
    try:
        response = input("\nNumber of commits to squash (2 or more, 0 to cancel): ").strip()
    except EOFError:
        print()
        return 0
    if not response:
        return 0
    try:
        count = int(response)
    except ValueError:
        raise ValueError(f"Not a number: {response}") from None
    if count > len(commits):
        raise ValueError(f"Only {len(commits)} commits are available")
    return max(count, 0)


def prompt_commit_message(commits) -> str:
    """Show the messages being squashed and read the new one."""
    print("\nMessages of the commits being squashed:")
    for commit in commits:
        print(f"  - {commit.subject}")
    try:
        return input("\nNew commit message: ")
    except EOFError:
        print()
        return ""


def choose_recent_branch(branches) -> Optional[str]:
    """Ask which branch to switch to. None means cancel."""
    print("Recent branches:")
    for number, branch in enumerate(branches, 1):
        print(f"  {number}. {branch.name} ({branch.last_commit})")
    try:
        response = input("\nSelect branch (number, empty to cancel): ").strip()
    except EOFError:
        print()
        return None
    if not response:
        return None
    if not response.isdigit() or not 1 <= int(response) <= len(branches):
        raise ValueError(f"Invalid choice: {response}. Enter 1 to {len(branches)}")
    return branches[int(response) - 1].name


def create_git_ops(config: GitPlusConfig) -> GitOperations:
    return GitOperations(config=config)


def create_session_workflow(config: GitPlusConfig) -> SessionWorkflow:
    """Create the pause/resume workflow with its real collaborators."""
    return SessionWorkflow(
        git_ops=create_git_ops(config),
        store=FileSessionStore(config.state_path),
        confirm=confirm,
        config=config,
        github=GitHubCLI(),
    )


def cmd_pause(args, config: GitPlusConfig) -> int:
    result = create_session_workflow(config).pause(args.branch)
    if result.cancelled:
        print("Cancelled.")
        return 0

    session = result.session
    if session.has_stash:
        print(f"✓ Stashed changes: {session.short_stash_ref} ({session.stash_message})")
    else:
        print("No uncommitted changes, stash skipped")
    print(f"✓ Switched to {session.to_branch}")
    print("\nTo return to your work: git resume")
    return 0


def cmd_resume(args, config: GitPlusConfig) -> int:
    result = create_session_workflow(config).resume()
    session = result.session

    if result.switched:
        print(f"✓ Switched to {session.from_branch}")
    else:
        print(f"Already on {session.from_branch}")

    if not session.has_stash:
        print("No stash to restore")
    elif result.stash_restored:
        print("✓ Restored stashed changes")

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    print("\n✓ Resumed work")
    return 0


def cmd_pr_checkout(args, config: GitPlusConfig) -> int:
    result = create_session_workflow(config).pr_checkout(args.pr_number)
    if result.cancelled:
        print("Cancelled.")
        return 0

    session = result.session
    if session.has_stash:
        print(f"✓ Stashed changes: {session.short_stash_ref} ({session.stash_message})")
    print(f"✓ Checked out PR #{result.pr_number} on branch '{session.to_branch}'")
    print("\nTo return to your work: git resume")
    return 0


def cmd_stash_cleanup(args, config: GitPlusConfig) -> int:
    cleanup = StashCleanup(create_git_ops(config), confirm)
    result = cleanup.run()

    for warning in cleanup.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if result.total == 0:
        print("No stashes.")
        return 0
    if result.total == 1:
        print("Only one stash, nothing to clean up.")
        return 0
    if not result.groups:
        print(f"✓ No duplicates among {result.total} stashes.")
        return 0

    for number, group in enumerate(result.groups, 1):
        print(f"Group {number}: {len(group)} duplicates")
        for info in group:
            print(f"  - {info.name} ({len(info.files)} files)")

    if result.cancelled:
        print("Cancelled.")
        return 0

    for name in result.deleted:
        print(f"✓ Dropped {name}")
    for name in result.failed:
        print(f"✗ Failed to drop {name}", file=sys.stderr)
    print(f"\nDropped {len(result.deleted)} stashes"
          + (f" ({len(result.failed)} failed)" if result.failed else ""))
    return 1 if result.failed else 0


def cmd_new_tag(args, config: GitPlusConfig) -> int:
    workflow = TagWorkflow(create_git_ops(config), confirm, config)
    interactive = args.type is None

    bump = args.type
    if interactive:
        current_tag, _ = workflow.current_version()
        print(f"Current tag: {current_tag}")
        bump = choose_bump(current_tag)

    result = workflow.new_tag(bump, message=args.message, push=args.push, dry_run=args.dry_run)
    print(f"Current tag: {result.current_tag}")
    print(f"New tag: {result.new_tag} ({result.bump.upper()})")

    if args.dry_run:
        print("(dry run, no tag created)")
        return 0
    if result.cancelled:
        print("Cancelled.")
        return 0

    print(f"✓ Created tag {result.new_tag}")
    if result.pushed:
        print(f"✓ Pushed {result.new_tag} to {config.remote}")
    elif interactive and confirm(f"Push {result.new_tag} to {config.remote}?", True):
        workflow.git_ops.push_tag(result.new_tag, config.remote)
        print(f"✓ Pushed {result.new_tag} to {config.remote}")
    return 0


def cmd_newbranch(args, config: GitPlusConfig) -> int:
    action = BranchWorkflow(create_git_ops(config), confirm, config).new_branch(
        args.branch, choose_branch_action)
    if action == CANCEL:
        print("Cancelled.")
    elif action == SWITCH:
        print(f"Switched to {args.branch}")
    else:
        print(f"Created branch {args.branch}")
    return 0


def cmd_delete_local_branches(args, config: GitPlusConfig) -> int:
    workflow = BranchWorkflow(create_git_ops(config), confirm, config)
    candidates = workflow.merged_branches()
    if not candidates:
        print("No merged branches to delete.")
        return 0

    print("Merged branches:")
    for branch in candidates:
        print(f"  {branch}")

    result = workflow.delete_merged_branches(candidates)
    if result.cancelled:
        print("Cancelled.")
        return 0
    print(f"✓ Deleted {len(result.deleted)} branches")
    return 0


def cmd_undo_last_commit(args, config: GitPlusConfig) -> int:
    BranchWorkflow(create_git_ops(config), confirm, config).undo_last_commit()
    print("Undid the last commit (changes are kept staged)")
    return 0


def cmd_amend(args, config: GitPlusConfig) -> int:
    CommitWorkflow(create_git_ops(config), confirm).amend(args.extra_args)
    return 0


def cmd_squash(args, config: GitPlusConfig) -> int:
    workflow = CommitWorkflow(create_git_ops(config), confirm)

    count = args.count
    if count is None:
        candidates = workflow.recent_commits(SQUASH_CANDIDATES)
        if len(candidates) < 2:
            print("Not enough commits to squash (at least 2 needed).")
            return 1
        count = choose_squash_count(candidates)
        if count == 0:
            print("Cancelled.")
            return 0

    commits = workflow.recent_commits(count)
    print(f"Squashing {count} commits:")
    for number, commit in enumerate(commits, 1):
        print(f"  {number}. {commit.short_commit} {commit.subject}")

    message = args.message
    if message is None:
        message = prompt_commit_message(commits)

    result = workflow.squash(count, message)
    if result.cancelled:
        print("Cancelled.")
        return 0
    print(f"✓ Squashed {count} commits into one")
    return 0


def cmd_pr_merge(args, config: GitPlusConfig) -> int:
    github = GitHubCLI()
    github.ensure_available()
    pr_number, extra_args = split_pr_number(args.extra_args)
    github.merge_pr(pr_number, extra_args)
    return 0


def cmd_reset_tag(args, config: GitPlusConfig) -> int:
    warnings = TagWorkflow(create_git_ops(config), confirm, config).reset_tag(
        args.tag, push=args.push)
    for warning in warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(f"✓ Tag {args.tag} now points at HEAD")
    if args.push:
        print(f"✓ Pushed {args.tag} to {config.remote}")
    return 0


def cmd_recent(args, config: GitPlusConfig) -> int:
    workflow = BranchWorkflow(create_git_ops(config), confirm, config)
    branches = workflow.recent_branches()
    if not branches:
        print("No other branches.")
        return 0

    branch = choose_recent_branch(branches)
    if branch is None:
        print("Cancelled.")
        return 0
    workflow.switch_to(branch)
    print(f"✓ Switched to {branch}")
    return 0


def cmd_back(args, config: GitPlusConfig) -> int:
    BranchWorkflow(create_git_ops(config), confirm, config).back()
    return 0


def cmd_worktree_list(args, config: GitPlusConfig) -> int:
    for worktree in WorktreeWorkflow(create_git_ops(config)).list():
        if worktree.bare:
            label = "(bare)"
        elif worktree.detached:
            label = "(detached)"
        else:
            label = f"[{worktree.branch}]"
        print(f"{worktree.path}  {worktree.short_head}  {label}")
    return 0


def cmd_worktree_new(args, config: GitPlusConfig) -> int:
    path = WorktreeWorkflow(create_git_ops(config)).new(args.branch, base=args.base)
    print(f"✓ Created worktree {path}")
    return 0


def cmd_worktree_delete(args, config: GitPlusConfig) -> int:
    worktree = WorktreeWorkflow(create_git_ops(config)).delete(args.target, force=args.force)
    print(f"✓ Removed worktree {worktree.path}")
    if worktree.branch:
        print(f"  Branch '{worktree.branch}' is kept; delete it with: git branch -d {worktree.branch}")
    return 0


COMMANDS = {
    'pause': cmd_pause,
    'resume': cmd_resume,
    'pr-checkout': cmd_pr_checkout,
    'stash-cleanup': cmd_stash_cleanup,
    'new-tag': cmd_new_tag,
    'newbranch': cmd_newbranch,
    'delete-local-branches': cmd_delete_local_branches,
    'undo-last-commit': cmd_undo_last_commit,
    'amend': cmd_amend,
    'squash': cmd_squash,
    'pr-merge': cmd_pr_merge,
    'reset-tag': cmd_reset_tag,
    'recent': cmd_recent,
    'back': cmd_back,
    'worktree-list': cmd_worktree_list,
    'worktree-new': cmd_worktree_new,
    'worktree-delete': cmd_worktree_delete,
}


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    if args is None:
        args = resolve_invocation(sys.argv[0], sys.argv[1:])

    parser = create_argument_parser()
    parsed_args = parse_arguments(parser, args)

    # Setup logging
    env_verbose = bool(os.environ.get('GIT_PLUS_VERBOSE', ""))
    verbose = parsed_args.verbose or env_verbose
    setup_logging(verbose)

    try:
        config = GitPlusConfig.from_cli_args(parsed_args)
        logger.debug("Configuration: %s", config)
        return COMMANDS[parsed_args.command](parsed_args, config)

    except NoActiveSessionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except GitPlusError as e:
        logger.debug("git plus error: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

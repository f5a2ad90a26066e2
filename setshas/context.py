"""
Util to load the event context (load_context) of the CI run that invoked us.

The runner describes the triggering event through environment variables and a
.json file holding the webhook payload.

About env vars:     https://docs.gitea.com/usage/actions/comparison
About event file:   https://docs.gitea.com/usage/webhooks
"""
import json
import logging
import os

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")
MERGE_GROUP_EVENT = "merge_group"


class ContextError(Exception):
    pass


class EventContext:
    def __init__(self, event_name, owner, repo, payload=None, sha=None):
        self.event_name = event_name
        self.owner = owner
        self.repo = repo
        self.payload = payload or {}
        self.sha = sha

    def __repr__(self):
        return (
            f"EventContext(event_name={self.event_name!r}, "
            f"repository={self.owner}/{self.repo}, sha={self.sha!r})"
        )

    @property
    def is_unmerged_pull_request(self):
        if self.event_name not in PULL_REQUEST_EVENTS:
            return False
        pull_request = self.payload.get("pull_request") or {}
        return not pull_request.get("merged")

    @property
    def is_merge_group(self):
        return self.event_name == MERGE_GROUP_EVENT

    def push_ref(self):
        """
        Ref to start looking for a successful commit from.

        The last commit pushed if the payload lists any, else the pushed ref,
        else the sha that triggered the run.
        """
        commits = self.payload.get("commits") or []
        if commits and commits[-1].get("id"):
            return commits[-1]["id"]
        return self.payload.get("ref") or self.sha or None


def load_context(environ=None):
    """
    Build an EventContext from the runner's environment variables.
    """
    if environ is None:
        environ = os.environ

    event_name = environ.get("GITHUB_EVENT_NAME")
    if not event_name:
        raise ContextError("GITHUB_EVENT_NAME is not set, are we running in CI?")

    repository = environ.get("GITHUB_REPOSITORY", "")
    owner, _, repo = repository.partition("/")
    if not owner or not repo or "/" in repo:
        raise ContextError(
            f"GITHUB_REPOSITORY should look like 'owner/repo', got '{repository}'"
        )

    payload = {}
    event_path = environ.get("GITHUB_EVENT_PATH")
    if event_path and os.path.exists(event_path):
        logger.info(f"Loading event payload from {event_path}")
        with open(event_path) as f:
            try:
                payload = json.load(f)
            except ValueError as e:
                raise ContextError(
                    f"Could not parse event payload at {event_path}: {e}"
                ) from e
        if not isinstance(payload, dict):
            raise ContextError(
                f"Event payload at {event_path} should be a JSON object"
            )
    else:
        logger.info("No event payload found, using an empty one")

    context = EventContext(
        event_name, owner, repo, payload, environ.get("GITHUB_SHA") or None
    )
    logger.debug(f"Loaded {context}")
    return context

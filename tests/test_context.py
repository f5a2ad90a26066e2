import json

import pytest

from setshas.context import ContextError, EventContext, load_context


@pytest.fixture
def event_file(tmp_path):
    def write(payload):
        path = tmp_path / 'event.json'
        path.write_text(json.dumps(payload))
        return str(path)
    return write


def test_load_context(event_file):
    path = event_file({'ref': 'refs/heads/main', 'commits': [{'id': 'abc'}]})
    context = load_context({
        'GITHUB_EVENT_NAME': 'push',
        'GITHUB_REPOSITORY': 'octo/widgets',
        'GITHUB_EVENT_PATH': path,
        'GITHUB_SHA': 'deadbeef',
    })

    assert context.event_name == 'push'
    assert context.owner == 'octo'
    assert context.repo == 'widgets'
    assert context.sha == 'deadbeef'
    assert context.payload['ref'] == 'refs/heads/main'


def test_load_context_without_payload():
    context = load_context({
        'GITHUB_EVENT_NAME': 'workflow_dispatch',
        'GITHUB_REPOSITORY': 'octo/widgets',
    })
    assert context.payload == {}
    assert context.sha is None


@pytest.mark.parametrize('environ', [
    {'GITHUB_REPOSITORY': 'octo/widgets'},
    {'GITHUB_EVENT_NAME': 'push'},
    {'GITHUB_EVENT_NAME': 'push', 'GITHUB_REPOSITORY': 'widgets'},
    {'GITHUB_EVENT_NAME': 'push', 'GITHUB_REPOSITORY': 'octo/widgets/extra'},
])
def test_load_context_invalid(environ):
    with pytest.raises(ContextError):
        load_context(environ)


@pytest.mark.parametrize('contents', [
    '{not json',
    '["a", "list"]',
    '"just a string"',
])
def test_load_context_invalid_payload(tmp_path, contents):
    path = tmp_path / 'event.json'
    path.write_text(contents)

    with pytest.raises(ContextError, match='event.json'):
        load_context({
            'GITHUB_EVENT_NAME': 'push',
            'GITHUB_REPOSITORY': 'octo/widgets',
            'GITHUB_EVENT_PATH': str(path),
        })


@pytest.mark.parametrize('event_name, payload, expected', [
    ('pull_request', {'pull_request': {'merged': False}}, True),
    ('pull_request_target', {'pull_request': {}}, True),
    ('pull_request', {'pull_request': {'merged': True}}, False),
    ('push', {}, False),
    ('merge_group', {}, False),
])
def test_is_unmerged_pull_request(event_name, payload, expected):
    context = EventContext(event_name, 'octo', 'widgets', payload)
    assert context.is_unmerged_pull_request is expected


def test_is_merge_group():
    assert EventContext('merge_group', 'octo', 'widgets').is_merge_group
    assert not EventContext('push', 'octo', 'widgets').is_merge_group


def test_push_ref_prefers_last_commit():
    context = EventContext('push', 'octo', 'widgets', {
        'ref': 'refs/heads/main',
        'commits': [{'id': 'first'}, {'id': 'last'}],
    }, sha='triggering')
    assert context.push_ref() == 'last'


def test_push_ref_falls_back_to_ref_then_sha():
    context = EventContext('push', 'octo', 'widgets', {
        'ref': 'refs/heads/main',
        'commits': [],
    }, sha='triggering')
    assert context.push_ref() == 'refs/heads/main'

    context = EventContext('schedule', 'octo', 'widgets', {}, sha='triggering')
    assert context.push_ref() == 'triggering'

    assert EventContext('schedule', 'octo', 'widgets').push_ref() is None

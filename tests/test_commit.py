import time

from kit.commit import commit
from kit.digest import Digest
from kit.objects import Commit, Identity, format_tz
from kit.store import ObjectStore
from datetime import timedelta

ADA = Identity('Ada', 'ada@example.com')
TREE = Digest.parse_hex('4b825dc642cb6eb9a060e54bf8d69288fbee4904')


def test_root_commit_payload(tmp_path):
    store = ObjectStore(tmp_path)
    digest = commit(store, TREE, None, ADA, 'init', timestamp=1700000000, tz='+0000')
    payload = store.read(digest).split(b'\0', 1)[1]
    assert payload.startswith(b'tree ' + TREE.hex.encode() + b'\n')
    assert b'parent ' not in payload
    assert b'\nauthor Ada <ada@example.com> 1700000000 +0000\n' in payload
    assert payload.endswith(b'\n\ninit\n')


def test_child_commit_links_parent(tmp_path):
    store = ObjectStore(tmp_path)
    first = commit(store, TREE, None, ADA, 'one', timestamp=1, tz='+0000')
    second = commit(store, TREE, first, ADA, 'two', timestamp=2, tz='+0000')
    obj = store.get(second)
    assert isinstance(obj, Commit)
    assert obj.parent == first
    assert obj.message == 'two'
    assert obj.author == obj.committer


def test_separate_committer(tmp_path):
    store = ObjectStore(tmp_path)
    bot = Identity('Bot', 'bot@example.com')
    obj = store.get(commit(store, TREE, None, ADA, 'm', committer=bot, timestamp=5, tz='-0700'))
    assert obj.committer.identity == bot
    assert obj.committer.timestamp == 5 and obj.committer.tz == '-0700'


def test_timestamp_defaults_to_wall_clock(tmp_path):
    store = ObjectStore(tmp_path)
    before = int(time.time())
    obj = store.get(commit(store, TREE, None, ADA, 'now'))
    assert before <= obj.author.timestamp <= int(time.time())


def test_missing_tree_is_not_checked(tmp_path):
    store = ObjectStore(tmp_path)
    ghost = Digest(b'\x42' * 20)
    digest = commit(store, ghost, ghost, ADA, 'loose', timestamp=0, tz='+0000')
    assert store.get(digest).tree == ghost
    assert not store.has(ghost)


def test_format_tz():
    assert format_tz(timedelta(hours=5, minutes=30)) == '+0530'
    assert format_tz(timedelta(hours=-8)) == '-0800'
    assert format_tz(timedelta(0)) == '+0000'

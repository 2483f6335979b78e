"""Command-line interface for kit"""
import argparse, logging, sys
from pathlib import Path
from .digest import Digest
from .errors import KitError
from .objects import Blob, Tree, decode_header, digest_of
from .repo import Repo

logger = logging.getLogger(__name__)


def _render(obj) -> bytes:
    if isinstance(obj, Blob):
        return obj.data
    if isinstance(obj, Tree):
        return ''.join(f'{e.mode.zfill(6)} {e.kind} {e.digest}\t{e.name}\n' for e in obj).encode()
    lines = [f'tree {obj.tree}']
    if obj.parent is not None:
        lines.append(f'parent {obj.parent}')
    lines += [f'author {obj.author}', f'committer {obj.committer}', '', obj.message]
    return ('\n'.join(lines) + '\n').encode()


def _run(args, out) -> int:
    if args.cmd == 'init':
        repo = Repo('.'); repo.init()
        out.write(f'Initialized empty kit repository in {repo.kit_dir}\n'.encode()); return 0

    if args.cmd == 'hash-object':
        data = Path(args.file).read_bytes()
        digest = Repo.discover('.').store_blob(data) if args.write else digest_of(Blob(data))
        out.write(f'{digest}\n'.encode()); return 0

    repo = Repo.discover('.')
    if args.cmd == 'cat-file':
        digest = Digest.coerce(args.digest)
        if args.pretty:
            out.write(_render(repo.load_object(digest))); return 0
        kind, size, _ = decode_header(repo.objects.read(digest))
        out.write(f'{kind if args.type else size}\n'.encode()); return 0
    if args.cmd == 'write-tree':
        out.write(f'{repo.store_tree_from_directory()}\n'.encode()); return 0
    if args.cmd == 'ls-tree':
        out.write(_render(Tree(tuple(repo.resolve_tree_entries(args.digest))))); return 0
    if args.cmd == 'commit-tree':
        digest = repo.create_commit(args.tree, args.parent, args.message)
        out.write(f'{digest}\n'.encode()); return 0
    if args.cmd == 'config':
        if args.name: repo.set_config('name', args.name)
        if args.email: repo.set_config('email', args.email)
        out.write(b'Config updated\n'); return 0
    return 2


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    parser = argparse.ArgumentParser(prog='kit')
    parser.add_argument('-v', '--verbose', action='store_true')
    sub = parser.add_subparsers(dest='cmd')

    sub.add_parser('init')
    sub.add_parser('write-tree')

    p_hash = sub.add_parser('hash-object'); p_hash.add_argument('-w', action='store_true', dest='write'); p_hash.add_argument('file')
    p_cat = sub.add_parser('cat-file')
    g_cat = p_cat.add_mutually_exclusive_group(required=True)
    g_cat.add_argument('-t', action='store_true', dest='type'); g_cat.add_argument('-s', action='store_true', dest='size'); g_cat.add_argument('-p', action='store_true', dest='pretty')
    p_cat.add_argument('digest')
    p_ls = sub.add_parser('ls-tree'); p_ls.add_argument('digest')
    p_commit = sub.add_parser('commit-tree'); p_commit.add_argument('tree'); p_commit.add_argument('-p', dest='parent'); p_commit.add_argument('-m', '--message', required=True)
    p_config = sub.add_parser('config'); p_config.add_argument('--name'); p_config.add_argument('--email')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    if not args.cmd:
        parser.print_help(); return 2

    try:
        return _run(args, sys.stdout.buffer)
    except KitError as exc:
        logger.debug('command %s failed', args.cmd, exc_info=True)
        print(f'kit: {exc}', file=sys.stderr)
        return 1
    except OSError as exc:
        print(f'kit: {exc}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    raise SystemExit(main())

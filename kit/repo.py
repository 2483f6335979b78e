"""Repository facade: scaffolding, config and the object operations callers use."""
from pathlib import Path
import json, logging, os
from typing import Dict, List, Optional, Union

from .commit import commit
from .digest import Digest
from .errors import ConfigError, CorruptObject, FilesystemFailure, RepositoryNotFound
from .objects import Blob, Identity, Object, Tree, TreeEntry
from .store import ObjectStore
from .tree import TreeBuilder

KIT_DIR = '.kit'
DEFAULT_NAME = 'unknown'
DEFAULT_EMAIL = 'unknown@localhost'

logger = logging.getLogger(__name__)

DigestLike = Union[Digest, str]


class Repo:
    def __init__(self, path: Union[str, Path] = '.'):
        self.workdir = Path(path).resolve()
        self.kit_dir = self.workdir / KIT_DIR
        self.objects = ObjectStore(self.kit_dir / 'objects')

    @classmethod
    def discover(cls, start: Union[str, Path] = '.') -> 'Repo':
        """Find the nearest enclosing directory holding a .kit directory."""
        here = Path(start).resolve()
        for candidate in (here, *here.parents):
            if (candidate / KIT_DIR).is_dir():
                return cls(candidate)
        raise RepositoryNotFound(f'not a kit repository (or any parent): {here}')

    def init(self):
        try:
            (self.kit_dir / 'objects').mkdir(parents=True, exist_ok=True)
            (self.kit_dir / 'refs' / 'heads').mkdir(parents=True, exist_ok=True)
            if not (self.kit_dir / 'HEAD').exists():
                (self.kit_dir / 'HEAD').write_text('ref: refs/heads/master\n')
            if not (self.kit_dir / 'config').exists():
                (self.kit_dir / 'config').write_text(json.dumps({'user': {}}))
        except OSError as exc:
            raise FilesystemFailure(f'cannot initialize {self.kit_dir}: {exc}') from exc
        logger.info('initialized kit repository in %s', self.kit_dir)

    def set_config(self, key: str, value: str):
        cfgf = self.kit_dir / 'config'
        cfg = self.get_config()
        cfg.setdefault('user', {})[key] = value
        try:
            cfgf.write_text(json.dumps(cfg, indent=2))
        except OSError as exc:
            raise FilesystemFailure(f'cannot write {cfgf}: {exc}') from exc

    def get_config(self) -> Dict[str, Dict[str, str]]:
        cfgf = self.kit_dir / 'config'
        if not cfgf.exists():
            return {}
        try:
            cfg = json.loads(cfgf.read_text())
        except OSError as exc:
            raise FilesystemFailure(f'cannot read {cfgf}: {exc}') from exc
        except ValueError as exc:
            raise ConfigError(f'{cfgf} is not valid JSON: {exc}') from exc
        if not isinstance(cfg, dict) or not isinstance(cfg.get('user', {}), dict):
            raise ConfigError(f'{cfgf} must hold an object with a "user" object')
        return cfg

    def identity(self) -> Identity:
        """Author identity: KIT_AUTHOR_* env vars, then config, then defaults."""
        user = self.get_config().get('user', {})
        name = os.environ.get('KIT_AUTHOR_NAME') or user.get('name') or DEFAULT_NAME
        email = os.environ.get('KIT_AUTHOR_EMAIL') or user.get('email') or DEFAULT_EMAIL
        try:
            return Identity(name, email)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    def store_blob(self, data: bytes) -> Digest:
        return self.objects.put(Blob(data))

    def store_tree_from_directory(self, path: Optional[Union[str, Path]] = None) -> Digest:
        directory = self.workdir if path is None else Path(path)
        return TreeBuilder(self.objects, exclude=(self.kit_dir,)).write(directory)

    def load_object(self, digest: DigestLike) -> Object:
        return self.objects.get(Digest.coerce(digest))

    def create_commit(self, tree: DigestLike, parent: Optional[DigestLike], message: str,
                      timestamp: Optional[int] = None, tz: Optional[str] = None) -> Digest:
        parent = None if parent is None else Digest.coerce(parent)
        return commit(self.objects, Digest.coerce(tree), parent, self.identity(), message,
                      timestamp=timestamp, tz=tz)

    def resolve_tree_entries(self, digest: DigestLike) -> List[TreeEntry]:
        obj = self.load_object(digest)
        if not isinstance(obj, Tree):
            raise CorruptObject(f'{digest} is a {obj.kind}, not a tree')
        return list(obj.entries)

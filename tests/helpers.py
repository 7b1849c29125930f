import hashlib
import io
import json
import tarfile
import zipfile
from typing import Any, Dict, List, Optional

from mclauncher.errors import TransportError


def sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def make_zip(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_tar_gz(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode='w:gz') as tf:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class FakeFetcher:
    """Stands in for ContentFetcher: serves canned bodies and counts every request."""

    def __init__(self, responses: Optional[Dict[str, bytes]] = None, json_responses: Optional[Dict[str, Any]] = None):
        self.responses = dict(responses or {})
        self.json_responses = dict(json_responses or {})
        self.calls: List[str] = []
        self.params: List[Optional[dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def add(self, url: str, body: bytes) -> str:
        self.responses[url] = body
        return url

    def add_json(self, url: str, document: Any) -> bytes:
        body = json.dumps(document).encode()
        self.responses[url] = body
        return body

    async def fetch(self, url, dest_path):
        self.calls.append(url)
        if url not in self.responses:
            raise TransportError(url, "HTTP 404 Not Found", status=404)
        dest_path.write_bytes(self.responses[url])

    async def get_json(self, url, params=None):
        self.calls.append(url)
        self.params.append(params)
        if url not in self.json_responses:
            raise TransportError(url, "HTTP 404 Not Found", status=404)
        return self.json_responses[url]

    async def close(self):
        pass


def library_entry(path: str, url: str, body: bytes, rules: Optional[list] = None) -> Dict[str, Any]:
    group_path, artifact, version, _ = path.rsplit('/', 3)
    entry = {
        'name': f"{group_path.replace('/', '.')}:{artifact}:{version}",
        'downloads': {
            'artifact': {'path': path, 'sha1': sha1(body), 'size': len(body), 'url': url},
        },
    }
    if rules is not None:
        entry['rules'] = rules
    return entry


class VersionWorld:
    """Registers a manifest, a version meta, its asset index and payloads on a FakeFetcher."""

    MANIFEST_URL = 'https://piston-meta.mojang.com/mc/game/version_manifest_v2.json'
    ASSET_ENDPOINT = 'https://resources.download.minecraft.net'

    def __init__(self, fetcher: FakeFetcher, version_id: str = '1.20'):
        self.fetcher = fetcher
        self.version_id = version_id
        self.client_body = b'client-jar-bytes'
        self.client_url = f"https://piston-data.mojang.com/{version_id}/client.jar"
        self.libraries: List[Dict[str, Any]] = []
        self.assets: Dict[str, bytes] = {}
        self.meta_url = f"https://piston-meta.mojang.com/v1/packages/{version_id}.json"
        self.index_url = f"https://piston-meta.mojang.com/v1/packages/index-{version_id}.json"
        self.java_major = 17
        self.arguments: Optional[Dict[str, Any]] = None

    def add_library(self, path: str, rules: Optional[list] = None) -> bytes:
        body = f"jar:{path}".encode()
        url = f"https://libraries.minecraft.net/{path}"
        self.fetcher.add(url, body)
        self.libraries.append(library_entry(path, url, body, rules))
        return body

    def add_native_library(
        self,
        path: str,
        classifiers: Dict[str, bytes],
        natives: Optional[Dict[str, str]] = None,
        rules: Optional[list] = None,
        with_artifact: bool = True,
    ) -> Dict[str, str]:
        """Adds a pre-1.19 style library whose native jars are classifiers.
        Returns the classifier paths by key."""
        if with_artifact:
            self.add_library(path, rules)
            entry = self.libraries[-1]
        else:
            group_path, artifact, version, _ = path.rsplit('/', 3)
            entry = {'name': f"{group_path.replace('/', '.')}:{artifact}:{version}", 'downloads': {}}
            if rules is not None:
                entry['rules'] = rules
            self.libraries.append(entry)
        classifier_paths = {}
        entry['downloads']['classifiers'] = {}
        for key, body in classifiers.items():
            classifier_path = f"{path[:-len('.jar')]}-{key}.jar"
            url = f"https://libraries.minecraft.net/{classifier_path}"
            self.fetcher.add(url, body)
            entry['downloads']['classifiers'][key] = {
                'path': classifier_path, 'sha1': sha1(body), 'size': len(body), 'url': url,
            }
            classifier_paths[key] = classifier_path
        if natives is not None:
            entry['natives'] = natives
        return classifier_paths

    def add_asset(self, name: str, body: bytes) -> str:
        self.assets[name] = body
        digest = sha1(body)
        self.fetcher.add(f"{self.ASSET_ENDPOINT}/{digest[:2]}/{digest}", body)
        return digest

    def meta_document(self) -> Dict[str, Any]:
        index_body = self.index_body()
        document = {
            'id': self.version_id,
            'type': 'release',
            'mainClass': 'net.minecraft.client.main.Main',
            'assets': '5',
            'assetIndex': {
                'id': '5',
                'sha1': sha1(index_body),
                'size': len(index_body),
                'totalSize': sum(len(b) for b in self.assets.values()),
                'url': self.index_url,
            },
            'downloads': {
                'client': {'sha1': sha1(self.client_body), 'size': len(self.client_body), 'url': self.client_url},
            },
            'javaVersion': {'component': 'java-runtime-gamma', 'majorVersion': self.java_major},
            'libraries': self.libraries,
        }
        if self.arguments is not None:
            document['arguments'] = self.arguments
        return document

    def index_body(self) -> bytes:
        objects = {name: {'hash': sha1(body), 'size': len(body)} for name, body in self.assets.items()}
        return json.dumps({'objects': objects}).encode()

    def publish(self) -> None:
        self.fetcher.add(self.client_url, self.client_body)
        self.fetcher.add(self.index_url, self.index_body())
        meta_body = self.fetcher.add_json(self.meta_url, self.meta_document())
        self.fetcher.add_json(self.MANIFEST_URL, {
            'latest': {'release': self.version_id, 'snapshot': self.version_id},
            'versions': [
                {
                    'id': self.version_id,
                    'type': 'release',
                    'url': self.meta_url,
                    'time': '2023-06-02T08:36:17+00:00',
                    'releaseTime': '2023-06-02T08:36:17+00:00',
                    'sha1': sha1(meta_body),
                    'complianceLevel': 1,
                },
            ],
        })

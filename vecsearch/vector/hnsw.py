"""
Approximate nearest neighbour search over a multi-layer proximity graph (HNSW-style).

Layers are ordered top (sparse, long-range links) to bottom (dense, holds
every inserted vector). Nodes are addressed by their position in a layer's
append-only list; positions are never reused, and down-links and neighbour
lists are plain integer positions.

The index is append-only: there is no delete or update. Removing a node
would need a policy for repairing its neighbours' edges and the down-links
pointing at it, and none is defined.
"""

import math
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import msgpack
import numpy as np
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..core import config
from ..core.errors import InvalidIndexError, ValidationError
from ..util.logging import logger
from .heap import MinHeap, TopK
from .similarity import euclidean_distance

Distance = float
NodeIndex = int
Candidate = Tuple[Distance, NodeIndex]


@dataclass
class LayerNode:
    """A graph node within one layer."""

    vector: np.ndarray
    """The stored vector"""

    connections: List[NodeIndex] = field(default_factory=list)
    """Positions of neighbours within the same layer"""

    layer_below: Optional[NodeIndex] = None
    """Position of the matching node in the layer below (None at the bottom)"""


Layer = List[LayerNode]


class NodeModel(BaseModel):
    vector: List[float]
    connections: List[int]
    layerBelow: Optional[int] = None


class HNSWModel(BaseModel):
    """Wire shape of a serialized index."""

    L: int = Field(ge=1)
    mL: float = Field(gt=0)
    efc: int = Field(ge=1)
    layers: List[List[NodeModel]]

    @model_validator(mode="after")
    def check_layer_count(self):
        if len(self.layers) != self.L:
            raise ValueError(f"Expected {self.L} layers, got {len(self.layers)}")
        return self


def search_layer(graph: Layer, entry: NodeIndex, query, ef: int) -> List[Candidate]:
    """
    Greedy beam search within one layer.

    Args:
        graph: The layer to search
        entry: Position of the node the search starts from
        query: Query vector
        ef: Maximum number of nearest candidates to keep

    Returns:
        Up to ``ef`` (distance, position) pairs sorted by ascending distance

    Raises:
        InvalidIndexError: If ``entry`` is not a valid position in ``graph``
    """
    if entry is None or entry < 0 or entry >= len(graph):
        raise InvalidIndexError(entry, len(graph))
    if ef < 1:
        raise ValueError("ef must be >= 1")

    best: Candidate = (euclidean_distance(graph[entry].vector, query), entry)
    # Keyed on negative distance so the heap root is the farthest retained candidate
    nns: TopK[Candidate] = TopK(ef, key=lambda c: -c[0])
    nns.push(best)
    visited = {entry}
    candidates: MinHeap[Candidate] = MinHeap(key=lambda c: c[0], items=[best])

    while candidates:
        current = candidates.pop()
        if nns.peek()[0] < current[0]:
            break

        for neighbour in graph[current[1]].connections:
            if neighbour in visited:
                continue
            visited.add(neighbour)
            candidate = (euclidean_distance(graph[neighbour].vector, query), neighbour)
            if nns.push(candidate):
                candidates.push(candidate)

    return sorted(nns.results())


class HNSW:
    """
    Multi-layer proximity graph index.

    Args:
        L: Number of layers
        mL: Level multiplier; larger values place more nodes on upper layers
        efc: Exploration factor used while inserting
        seed: Optional seed for reproducible level assignment
    """

    def __init__(self, L: int = None, mL: float = None, efc: int = None, seed: Optional[int] = None):
        default_L, default_mL, default_efc = config.get_hnsw_params()
        self.L = L if L is not None else default_L
        self.mL = mL if mL is not None else default_mL
        self.efc = efc if efc is not None else default_efc
        if self.L < 1:
            raise ValueError("L must be >= 1")
        if self.efc < 1:
            raise ValueError("efc must be >= 1")

        self._rng = random.Random(seed)
        self.index: List[Layer] = [[] for _ in range(self.L)]

    def _get_insert_layer(self) -> int:
        u = 1.0 - self._rng.random()  # (0, 1]
        return min(int(math.floor(-math.log(u) * self.mL)), self.L - 1)

    def _below_length(self, n: int) -> Optional[int]:
        return len(self.index[n + 1]) if n < self.L - 1 else None

    def insert(self, vec) -> None:
        """Insert a vector into every layer from its drawn level down to the bottom."""
        vec = np.array(vec, dtype=np.float64)
        level = self._get_insert_layer()
        start = 0

        for n in range(self.L):
            graph = self.index[n]

            if not graph:
                graph.append(LayerNode(vector=vec, connections=[], layer_below=self._below_length(n)))
                continue

            if n < level:
                nearest = search_layer(graph, start, vec, 1)[0][1]
                start = graph[nearest].layer_below
            else:
                node = LayerNode(vector=vec, connections=[], layer_below=self._below_length(n))
                position = len(graph)
                for _, neighbour in search_layer(graph, start, vec, self.efc):
                    node.connections.append(neighbour)
                    graph[neighbour].connections.append(position)
                graph.append(node)
                start = graph[start].layer_below

        logger.debug(f"hnsw.insert level={level} size={self.size()}")

    def build(self, vectors: Iterable) -> "HNSW":
        """Insert many vectors in order."""
        count = 0
        for vec in vectors:
            self.insert(vec)
            count += 1
        logger.log_graph_operation("build", {"inserted": count, "size": self.size()})
        return self

    def search(self, query, ef: int = 1) -> List[Candidate]:
        """
        Approximate nearest neighbours of ``query``.

        Starts at position 0 of the top layer and follows the best candidate's
        down-link on every layer.

        Returns:
            (distance, position) pairs for the bottom layer, nearest first;
            empty when the index is empty
        """
        if not self.index[0]:
            return []

        entry = 0
        nns: List[Candidate] = []
        for graph in self.index:
            nns = search_layer(graph, entry, query, ef)
            below = graph[nns[0][1]].layer_below
            if below is None:
                break
            entry = below
        return nns

    def search_vectors(self, query, ef: int = 1) -> List[Tuple[Distance, np.ndarray]]:
        """Like ``search`` but returns the stored vectors instead of positions."""
        bottom = self.index[-1]
        return [(distance, bottom[position].vector) for distance, position in self.search(query, ef)]

    def size(self) -> int:
        """Number of inserted vectors (the bottom layer holds all of them)."""
        return len(self.index[-1])

    def __len__(self) -> int:
        return self.size()

    def validate(self) -> List[str]:
        """Check down-link and neighbour integrity and return any issues."""
        issues = []
        for n, graph in enumerate(self.index):
            below_size = len(self.index[n + 1]) if n < self.L - 1 else None
            for position, node in enumerate(graph):
                if below_size is None:
                    if node.layer_below is not None:
                        issues.append(f"layer {n} node {position}: bottom node has a down-link")
                elif node.layer_below is None or not 0 <= node.layer_below < below_size:
                    issues.append(f"layer {n} node {position}: invalid down-link {node.layer_below}")
                for neighbour in node.connections:
                    if not 0 <= neighbour < len(graph):
                        issues.append(f"layer {n} node {position}: invalid neighbour {neighbour}")
        return issues

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Plain node/edge structure of the whole index."""
        return {
            "L": self.L,
            "mL": self.mL,
            "efc": self.efc,
            "layers": [
                [
                    {
                        "vector": node.vector.tolist(),
                        "connections": list(node.connections),
                        "layerBelow": node.layer_below,
                    }
                    for node in graph
                ]
                for graph in self.index
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], seed: Optional[int] = None) -> "HNSW":
        """
        Rebuild an index from ``to_dict`` output.

        Raises:
            ValidationError: If the structure is malformed
        """
        try:
            model = HNSWModel.model_validate(data)
        except PydanticValidationError as e:
            logger.log_validation_error("hnsw.decode", [e])
            raise ValidationError(f"Invalid HNSW payload: {e}") from e

        hnsw = cls(L=model.L, mL=model.mL, efc=model.efc, seed=seed)
        hnsw.index = [
            [
                LayerNode(
                    vector=np.array(node.vector, dtype=np.float64),
                    connections=list(node.connections),
                    layer_below=node.layerBelow,
                )
                for node in graph
            ]
            for graph in model.layers
        ]

        issues = hnsw.validate()
        if issues:
            raise ValidationError(f"Invalid HNSW payload: {issues[0]}")
        return hnsw

    def encode(self) -> bytes:
        """Binary (msgpack) encoding of the whole index."""
        return msgpack.packb(self.to_dict(), use_bin_type=True)

    @classmethod
    def decode(cls, data: bytes, seed: Optional[int] = None) -> "HNSW":
        """
        Rebuild an index from ``encode`` output.

        Raises:
            ValidationError: If the bytes are not a valid encoded index
        """
        try:
            payload = msgpack.unpackb(data, raw=False)
        except (msgpack.UnpackException, ValueError, TypeError) as e:
            raise ValidationError(f"Invalid HNSW payload: {e}") from e
        return cls.from_dict(payload, seed=seed)

    def save(self, path=None) -> Path:
        """Write the encoded index to disk."""
        path = Path(path or config.HNSW_INDEX_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.encode()
        path.write_bytes(data)
        logger.log_graph_operation("save", {"path": str(path), "bytes": len(data), "size": self.size()})
        return path

    @classmethod
    def load(cls, path=None, seed: Optional[int] = None) -> "HNSW":
        """Read an index written by ``save``."""
        path = Path(path or config.HNSW_INDEX_PATH)
        if not path.exists():
            raise FileNotFoundError(f"HNSW index not found: {path}")
        hnsw = cls.decode(path.read_bytes(), seed=seed)
        logger.log_graph_operation("load", {"path": str(path), "size": hnsw.size()})
        return hnsw

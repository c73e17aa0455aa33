"""
Mesh Entities
=============
Geometric view of the mesh entities the quadrature engine integrates over.

Mesh storage and topology belong to the mesh collaborator; these classes only
carry what quadrature needs: measure, barycenter, vertex coordinates and a
decomposition into simplices (triangles for faces, tetrahedra for cells).
Geometry is computed once at construction, instances are read-only afterwards.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from pdeinputs.errors import ShapeMismatch

if TYPE_CHECKING:
    import numpy.typing as npt

# Vertex loops of a hexahedron (bottom 0-1-2-3, top 4-5-6-7), outward oriented
HEXAHEDRON_FACES: tuple[tuple[int, ...], ...] = (
    (0, 3, 2, 1),
    (4, 5, 6, 7),
    (0, 1, 5, 4),
    (1, 2, 6, 5),
    (2, 3, 7, 6),
    (3, 0, 4, 7),
)


def _as_coordinates(vertices: Sequence[Sequence[float]] | npt.NDArray[np.float64], n_min: int) -> npt.NDArray[np.float64]:
    coords = np.array(vertices, dtype=np.float64)
    if coords.ndim != 2 or coords.shape[1] != 3 or coords.shape[0] < n_min:
        raise ShapeMismatch(
            f"Expected at least {n_min} vertices with 3 coordinates, got shape {coords.shape}."
        )
    coords.flags.writeable = False
    return coords


def simplex_measure(vertices: npt.NDArray[np.float64]) -> float:
    """
    Measure of a triangle (3 vertices) or tetrahedron (4 vertices) in 3-D.

    Returns the area or the unsigned volume.
    """
    edges = vertices[1:] - vertices[0]
    if len(vertices) == 3:
        return 0.5 * float(np.linalg.norm(np.cross(edges[0], edges[1])))
    if len(vertices) == 4:
        return abs(float(np.linalg.det(edges))) / 6.0
    raise ShapeMismatch(f"Simplex must have 3 or 4 vertices, got {len(vertices)}.")


def newell_normal(loop: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Area vector of a closed vertex loop (Newell's method).

    Its direction follows the loop orientation (right-hand rule) and its norm
    is the area of the polygon, whether convex or not.
    """
    return 0.5 * np.sum(np.cross(loop, np.roll(loop, -1, axis=0)), axis=0)


def signed_triangle_area(triangle: npt.NDArray[np.float64], unit_normal: npt.NDArray[np.float64]) -> float:
    """Area of ``triangle``, negative when it is oriented against ``unit_normal``."""
    return 0.5 * float(np.dot(np.cross(triangle[1] - triangle[0], triangle[2] - triangle[0]), unit_normal))


def signed_tetrahedron_volume(apex: npt.NDArray[np.float64], triangle: npt.NDArray[np.float64]) -> float:
    """
    Volume of the cone from ``apex`` over ``triangle``.

    Positive when the triangle is oriented away from the apex, negative when
    it faces it.
    """
    normal = np.cross(triangle[1] - triangle[0], triangle[2] - triangle[0])
    return float(np.dot(normal, triangle[0] - apex)) / 6.0


class MeshEntity(ABC):
    """
    Abstract base class for cells, faces and vertices seen by quadrature.
    """
    dimension: int

    def __init__(self, index: Optional[int] = None) -> None:
        self.index = index

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(index={self.index}, measure={self.measure:.6g})"

    @property
    @abstractmethod
    def measure(self) -> float:
        """Area of a face, volume of a cell, dual volume of a vertex."""
        pass

    @property
    @abstractmethod
    def centroid(self) -> npt.NDArray[np.float64]:
        """Barycenter of the entity."""
        pass

    @property
    @abstractmethod
    def vertices(self) -> npt.NDArray[np.float64]:
        """Vertex coordinates, one row per vertex."""
        pass

    @abstractmethod
    def simplices(self) -> list[npt.NDArray[np.float64]]:
        """Decomposition into simplices, each given by its vertex coordinates."""
        pass

    def sub_measures(self) -> list[float]:
        """
        Measure of every simplex of :meth:`simplices`, in the same order.

        Non-convex entities may have negative entries (simplices folding back
        over the apex); the entries always sum to :attr:`measure`.
        """
        return [simplex_measure(simplex) for simplex in self.simplices()]

    @property
    def is_simplex(self) -> bool:
        return len(self.vertices) == self.dimension + 1


class Triangle(MeshEntity):
    """Triangular face in 3-D space."""
    dimension = 2

    def __init__(self, vertices: Sequence[Sequence[float]], index: Optional[int] = None) -> None:
        super().__init__(index)
        self._vertices = _as_coordinates(vertices, 3)
        if len(self._vertices) != 3:
            raise ShapeMismatch(f"A triangle has 3 vertices, got {len(self._vertices)}.")
        self._measure = simplex_measure(self._vertices)

    @property
    def measure(self) -> float:
        return self._measure

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        return self._vertices.mean(axis=0)

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        return self._vertices

    def simplices(self) -> list[npt.NDArray[np.float64]]:
        return [self._vertices]


class Tetrahedron(MeshEntity):
    """Tetrahedral cell."""
    dimension = 3

    def __init__(self, vertices: Sequence[Sequence[float]], index: Optional[int] = None) -> None:
        super().__init__(index)
        self._vertices = _as_coordinates(vertices, 4)
        if len(self._vertices) != 4:
            raise ShapeMismatch(f"A tetrahedron has 4 vertices, got {len(self._vertices)}.")
        self._measure = simplex_measure(self._vertices)

    @property
    def measure(self) -> float:
        return self._measure

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        return self._vertices.mean(axis=0)

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        return self._vertices

    def simplices(self) -> list[npt.NDArray[np.float64]]:
        return [self._vertices]


class PolygonFace(MeshEntity):
    """
    Planar polygonal face given by its vertex loop, convex or not.

    The face is oriented by the Newell normal of its loop. Sub-triangles
    (x_f, v_i, v_i+1) are fanned around the barycenter x_f and carry signed
    areas, so triangles folding back over x_f at a reflex vertex are
    subtracted. The measure is the sum of these signed areas.
    """
    dimension = 2

    def __init__(self, vertices: Sequence[Sequence[float]], index: Optional[int] = None) -> None:
        super().__init__(index)
        self._vertices = _as_coordinates(vertices, 3)

        area_vector = newell_normal(self._vertices)
        area = float(np.linalg.norm(area_vector))
        self._normal = area_vector / area if area > 0.0 else np.zeros(3)
        self._normal.flags.writeable = False

        # Signed areas do not depend on the apex, so the vertex mean locates
        # the barycenter; the barycenter is then the apex of the subdivision.
        vertex_mean = self._vertices.mean(axis=0)
        fan = self._fan(vertex_mean)
        areas = np.array([signed_triangle_area(triangle, self._normal) for triangle in fan])
        if areas.sum() > 0.0:
            self._centroid = areas @ np.array([triangle.mean(axis=0) for triangle in fan]) / areas.sum()
        else:
            self._centroid = vertex_mean
        self._centroid.flags.writeable = False

        self._simplices = self._fan(self._centroid)
        self._sub_measures = [signed_triangle_area(triangle, self._normal) for triangle in self._simplices]
        self._measure = float(np.sum(self._sub_measures))

    def _fan(self, apex: npt.NDArray[np.float64]) -> list[npt.NDArray[np.float64]]:
        n = len(self._vertices)
        triangles = []
        for i in range(n):
            triangle = np.array([apex, self._vertices[i], self._vertices[(i + 1) % n]])
            triangle.flags.writeable = False
            triangles.append(triangle)
        return triangles

    @property
    def measure(self) -> float:
        return self._measure

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        return self._centroid.copy()

    @property
    def normal(self) -> npt.NDArray[np.float64]:
        """Unit normal, oriented by the vertex loop."""
        return self._normal

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        return self._vertices

    def simplices(self) -> list[npt.NDArray[np.float64]]:
        return list(self._simplices)

    def sub_measures(self) -> list[float]:
        return list(self._sub_measures)


class PolyhedronCell(MeshEntity):
    """
    Polyhedral cell described by its vertices and face vertex loops.

    The cell is split into tetrahedra (x_c, x_f, v_i, v_i+1), one per edge of
    every face, where x_f is the face barycenter and x_c the cell barycenter.

    Face loops must be consistently oriented (all outward, or all inward).
    Each tetrahedron carries a signed volume taken from the orientation of its
    face triangle, so non-convex cells are measured exactly: tetrahedra whose
    face triangle looks towards x_c count negatively.
    """
    dimension = 3

    def __init__(
        self,
        vertices: Sequence[Sequence[float]],
        faces: Sequence[Sequence[int]],
        index: Optional[int] = None,
    ) -> None:
        super().__init__(index)
        self._vertices = _as_coordinates(vertices, 4)

        n_vertices = len(self._vertices)
        if len(faces) < 4:
            raise ShapeMismatch(f"A polyhedron needs at least 4 faces, got {len(faces)}.")
        for loop in faces:
            if len(loop) < 3 or any(not 0 <= i < n_vertices for i in loop):
                raise ShapeMismatch(f"Invalid face loop {tuple(loop)} for {n_vertices} vertices.")
        self._faces = [PolygonFace(self._vertices[list(loop)]) for loop in faces]

        # Cone volumes over a closed surface do not depend on the apex: the
        # vertex mean locates the barycenter, which is then the apex used by
        # the subdivision.
        vertex_mean = self._vertices.mean(axis=0)
        cones = self._tetrahedra(vertex_mean)
        volumes = np.array([signed_tetrahedron_volume(vertex_mean, tet[1:]) for tet in cones])
        # Inward loops give a negative total
        self._orientation = 1.0 if volumes.sum() >= 0.0 else -1.0
        volumes *= self._orientation
        if volumes.sum() > 0.0:
            self._centroid = volumes @ np.array([tet.mean(axis=0) for tet in cones]) / volumes.sum()
        else:
            self._centroid = vertex_mean
        self._centroid.flags.writeable = False

        self._simplices = self._tetrahedra(self._centroid)
        self._sub_measures = [
            self._orientation * signed_tetrahedron_volume(self._centroid, tet[1:]) for tet in self._simplices
        ]
        self._measure = float(np.sum(self._sub_measures))

    @classmethod
    def hexahedron(cls, vertices: Sequence[Sequence[float]], index: Optional[int] = None) -> PolyhedronCell:
        """Hexahedron with vertices ordered bottom 0-1-2-3, top 4-5-6-7."""
        return cls(vertices, HEXAHEDRON_FACES, index=index)

    @classmethod
    def box(
        cls,
        lower: Sequence[float] = (0.0, 0.0, 0.0),
        upper: Sequence[float] = (1.0, 1.0, 1.0),
        index: Optional[int] = None,
    ) -> PolyhedronCell:
        """Axis-aligned box between two opposite corners."""
        (x0, y0, z0), (x1, y1, z1) = lower, upper
        return cls.hexahedron(
            [
                [x0, y0, z0], [x1, y0, z0], [x1, y1, z0], [x0, y1, z0],
                [x0, y0, z1], [x1, y0, z1], [x1, y1, z1], [x0, y1, z1],
            ],
            index=index,
        )

    def _tetrahedra(self, apex: npt.NDArray[np.float64]) -> list[npt.NDArray[np.float64]]:
        tets = []
        for face in self._faces:
            face_center = face.centroid
            for sub_triangle in face.simplices():
                # sub_triangle is (x_f, v_i, v_i+1)
                tet = np.array([apex, face_center, sub_triangle[1], sub_triangle[2]])
                tet.flags.writeable = False
                tets.append(tet)
        return tets

    @property
    def faces(self) -> list[PolygonFace]:
        return list(self._faces)

    @property
    def measure(self) -> float:
        return self._measure

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        return self._centroid.copy()

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        return self._vertices

    def simplices(self) -> list[npt.NDArray[np.float64]]:
        return list(self._simplices)

    def sub_measures(self) -> list[float]:
        return list(self._sub_measures)


class VertexEntity(MeshEntity):
    """A mesh vertex together with the measure of its dual cell."""
    dimension = 0

    def __init__(self, coords: Sequence[float], dual_measure: float, index: Optional[int] = None) -> None:
        super().__init__(index)
        self._coords = np.array(coords, dtype=np.float64)
        if self._coords.shape != (3,):
            raise ShapeMismatch(f"A vertex has 3 coordinates, got shape {self._coords.shape}.")
        self._coords.flags.writeable = False
        self._measure = float(dual_measure)

    @property
    def measure(self) -> float:
        return self._measure

    @property
    def centroid(self) -> npt.NDArray[np.float64]:
        return self._coords.copy()

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        return self._coords[np.newaxis, :]

    def simplices(self) -> list[npt.NDArray[np.float64]]:
        return [self.vertices]

    def sub_measures(self) -> list[float]:
        return [self._measure]

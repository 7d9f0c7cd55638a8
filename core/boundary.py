#!/usr/bin/env python3
# core/boundary.py
# Physical boundary conditions as per-face policies filling ghost layers.
import numpy as np

from core.errors import ConfigurationError
from core.thermo import gas_constant


def _face(axis, s):
    idx = [slice(None)] * 4
    idx[axis + 1] = s
    return tuple(idx)


def _ghost_interior(n, ng, side):
    """(ghost slab, mirrored interior slab) along an axis of length n."""
    if side == 0:
        return slice(0, ng), slice(2*ng - 1, ng - 1, -1)
    return slice(n - ng, n), slice(n - ng - 1, n - 2*ng - 1, -1)


def apply_periodic(arr, axis, ng):
    n = arr.shape[axis + 1]
    arr[_face(axis, slice(0, ng))] = arr[_face(axis, slice(n - 2*ng, n - ng))]
    arr[_face(axis, slice(n - ng, n))] = arr[_face(axis, slice(ng, 2*ng))]


def apply_outflow(arr, axis, side, ng):
    n = arr.shape[axis + 1]
    if side == 0:
        arr[_face(axis, slice(0, ng))] = arr[_face(axis, slice(ng, ng + 1))]
    else:
        arr[_face(axis, slice(n - ng, n))] = arr[_face(axis, slice(n - ng - 1, n - ng))]


def apply_mirror(arr, axis, side, ng):
    n = arr.shape[axis + 1]
    g, m = _ghost_interior(n, ng, side)
    arr[_face(axis, g)] = arr[_face(axis, m)]


def reflect_velocity(Q, dxi, axis, side, ng):
    """u -> u - 2 (u.n) n in the ghost slab, n the unit normal grad(xi_axis)."""
    n = Q.shape[axis + 1]
    g, _ = _ghost_interior(n, ng, side)
    s = _face(axis, g)
    nrm = dxi[axis][s]
    nrm = nrm / np.sqrt(np.sum(nrm*nrm, axis=0))
    un = np.sum(Q[1:4][s] * nrm, axis=0)
    Q[1:4][s] -= 2.0 * un * nrm


class FacePolicy:
    kind = None

    def __init__(self, face):
        self.face = face
        self.axis = "xyz".index(face[0])
        self.side = 0 if face[1] == "-" else 1

    def __call__(self, Q, rhoi, metrics, ng):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.face!r})"


class PeriodicBC(FacePolicy):
    kind = "periodic"

    # both faces are filled from the low-side policy only
    def __call__(self, Q, rhoi, metrics, ng):
        if self.side == 0:
            apply_periodic(Q, self.axis, ng)
            apply_periodic(rhoi, self.axis, ng)


class OutflowBC(FacePolicy):
    kind = "outflow"

    def __call__(self, Q, rhoi, metrics, ng):
        apply_outflow(Q, self.axis, self.side, ng)
        apply_outflow(rhoi, self.axis, self.side, ng)


class ReflectiveBC(FacePolicy):
    kind = "reflective"

    def __call__(self, Q, rhoi, metrics, ng):
        apply_mirror(Q, self.axis, self.side, ng)
        apply_mirror(rhoi, self.axis, self.side, ng)
        reflect_velocity(Q, metrics.dxi, self.axis, self.side, ng)


class InflowBC(FacePolicy):
    """Fixed Dirichlet state: rho, u, T and Y from the INFLOW block, p = rho R T."""
    kind = "inflow"

    def __init__(self, face, inflow, thermo):
        super().__init__(face)
        if not inflow:
            raise ConfigurationError(f"inflow BC on {face} needs an INFLOW state")
        Y = np.zeros(thermo.nspecs)
        for name, val in dict(inflow["Y"]).items():
            Y[thermo.index(name)] = float(val)
        Y /= Y.sum()
        rho = float(inflow["rho"])
        T = float(inflow["T"])
        u = [float(v) for v in inflow["u"]]
        p = rho * gas_constant(Y, thermo.W) * T
        self.q = np.array([rho, u[0], u[1], u[2], p, T])
        self.ri = rho * Y

    def __call__(self, Q, rhoi, metrics, ng):
        n = Q.shape[self.axis + 1]
        g, _ = _ghost_interior(n, ng, self.side)
        s = _face(self.axis, g)
        Q[s] = self.q.reshape((-1, 1, 1, 1))
        rhoi[s] = self.ri.reshape((-1, 1, 1, 1))


_POLICIES = {"periodic": PeriodicBC, "outflow": OutflowBC, "reflective": ReflectiveBC}


def make_face_policy(face, kind, cfg, thermo):
    if kind == "inflow":
        return InflowBC(face, cfg.inflow, thermo)
    if kind not in _POLICIES:
        raise ConfigurationError(f"unknown boundary kind {kind!r} on face {face}")
    return _POLICIES[kind](face)


class BoundaryPolicy:
    """Physical ghost fill for one rank.

    y and z faces are always local. x faces belong to the edge ranks only and
    are skipped when x is periodic: those ghosts come from the halo exchange.
    """

    def __init__(self, yz, x):
        self.yz = list(yz)
        self.x = list(x)

    @classmethod
    def from_config(cls, cfg, rank, thermo):
        yz = [make_face_policy(f, cfg.bc[f], cfg, thermo) for f in ("y-", "y+", "z-", "z+")]
        x = []
        if not cfg.periodic(0):
            if rank == 0:
                x.append(make_face_policy("x-", cfg.bc["x-"], cfg, thermo))
            if rank == cfg.nprocs - 1:
                x.append(make_face_policy("x+", cfg.bc["x+"], cfg, thermo))
        return cls(yz, x)

    def apply_yz(self, Q, rhoi, metrics, ng):
        for bc in self.yz:
            bc(Q, rhoi, metrics, ng)

    def apply_x(self, Q, rhoi, metrics, ng):
        for bc in self.x:
            bc(Q, rhoi, metrics, ng)

    def apply(self, Q, rhoi, metrics, ng):
        self.apply_yz(Q, rhoi, metrics, ng)
        self.apply_x(Q, rhoi, metrics, ng)

#!/usr/bin/env python3
# core/integrator.py
# SSP-RK3 driver for one rank: stage task graphs, stage blending against an
# immutable step baseline, operator-split reaction half-steps, health checks.
from typing import NamedTuple

import numpy as np
from mpi4py import MPI

from core.convert import cons_to_prim, prim_to_cons
from core.divergence import apply_divergence
from core.errors import NumericalDivergenceError
from core.halo import fill_and_exchange
from core.reconstruct import reconstruct_faces, shock_sensor
from core.split import split_fluxes, spectral_radius
from core.tasks import TaskGraph
from core.transport import mixture, sound_speed_field
from core.viscous import add_viscous_faces, viscous_fluxes
from utils.diagnostics import find_bad_cells

# (baseline, updated) weights per stage
SSPRK3_WEIGHTS = ((0.0, 1.0), (0.75, 0.25), (1.0/3.0, 2.0/3.0))

AXES = "xyz"


class StageBaseline(NamedTuple):
    """Conservative state at the start of a step; read-only for all stages."""
    U: np.ndarray
    rhoi: np.ndarray

    @classmethod
    def capture(cls, state):
        U = state.U.copy()
        rhoi = state.rhoi.copy()
        U.flags.writeable = False
        rhoi.flags.writeable = False
        return cls(U, rhoi)


def ssp_blend(base, updated, weights):
    a, b = weights
    return a*base + b*updated


class RK3Integrator:
    def __init__(self, cfg, metrics, state, thermo, bcs, nbrs, comm, chemistry=None):
        self.cfg = cfg
        self.metrics = metrics
        self.state = state
        self.thermo = thermo
        self.bcs = bcs
        self.nbrs = nbrs
        self.comm = comm
        self.rank = comm.Get_rank()
        self.chemistry = chemistry
        self.ng = cfg.ng

        # physical (non-periodic, non-rank) domain edges per axis
        px = not cfg.periodic(0)
        self.edges = (
            (px and self.rank == 0, px and self.rank == cfg.nprocs - 1),
            (not cfg.periodic(1), not cfg.periodic(1)),
            (not cfg.periodic(2), not cfg.periodic(2)),
        )

    # ------------------------
    # ghost refresh / conversions
    # ------------------------
    def refresh(self):
        """Ghosts of Q and rhoi, mass fractions, then U on every cell from Q."""
        self.fill()
        th = self.thermo
        st = self.state
        prim_to_cons(st.Q, st.Yi, st.U, th.nasa, th.tmid, th.W)

    def fill(self):
        st = self.state
        fill_and_exchange(st.Q, st.rhoi, st.Yi, self.metrics, self.bcs,
                          self.comm, self.nbrs, self.ng)

    def convert(self):
        th = self.thermo
        st = self.state
        cons_to_prim(st.U, st.rhoi, st.Q, self.ng, th.nasa, th.tmid, th.W)

    # ------------------------
    # kernels wrapped as stage tasks
    # ------------------------
    def _mixture(self):
        st, th = self.state, self.thermo
        mixture(st.Q, st.Yi, st.mu, st.lam, st.D, st.cs, st.Xi, st.mui, st.Dij,
                th.W, th.sigma, th.eps, th.nasa, th.tmid)

    def _sensor(self):
        shock_sensor(self.state.Q, self.state.phi)

    def _viscous(self):
        st, th, m = self.state, self.thermo, self.metrics
        viscous_fluxes(st.Q, st.Yi, st.mu, st.lam, st.D, m.dxi, m.J, st.Fv, st.Fd,
                       th.nasa, th.tmid, th.W)

    def _split(self, axis):
        st, th, m = self.state, self.thermo, self.metrics
        split_fluxes(st.Q, st.rhoi, st.Yi, st.cs, m.dxi, m.J, axis,
                     st.Fp, st.Fm, st.Fp_i, st.Fm_i, th.nasa, th.tmid, th.W)

    def _faces(self, axis):
        st, cfg = self.state, self.cfg
        F, Fi = st.face_fluxes(axis)
        lo, hi = self.edges[axis]
        for Fp, Fm, out in ((st.Fp, st.Fm, F), (st.Fp_i, st.Fm_i, Fi)):
            reconstruct_faces(Fp, Fm, st.phi, out, axis, self.ng, lo, hi,
                              cfg.phi_linear, cfg.phi_weno, cfg.weno_eps)
        if cfg.viscous:
            add_viscous_faces(F, st.Fv[axis], axis, self.ng, rows=slice(1, 5))
            add_viscous_faces(Fi, st.Fd[axis], axis, self.ng)

    def species_advance(self, dt):
        st = self.state
        apply_divergence(st.rhoi, st.Fx_i, st.Fy_i, st.Fz_i, self.metrics.J, dt, self.ng)

    def flow_advance(self, dt):
        st = self.state
        apply_divergence(st.U, st.Fx, st.Fy, st.Fz, self.metrics.J, dt, self.ng)

    def flux_graph(self, dt):
        """U, rhoi <- U, rhoi - dt * div(F) from the current Q/rhoi/Yi (ghosts filled)."""
        g = TaskGraph(known=self.state.buffers())
        g.add("mixture", self._mixture, reads=("Q", "Yi"),
              writes=("mu", "lam", "D", "cs", "Xi", "mui", "Dij"))
        g.add("sensor", self._sensor, reads=("Q",), writes=("phi",))
        if self.cfg.viscous:
            g.add("viscous", self._viscous, reads=("Q", "Yi", "mu", "lam", "D"),
                  writes=("Fv", "Fd"))
        for axis, ax in enumerate(AXES):
            g.add(f"split_{ax}", lambda a=axis: self._split(a),
                  reads=("Q", "rhoi", "Yi", "cs"), writes=("Fp", "Fm", "Fp_i", "Fm_i"))
            g.add(f"faces_{ax}", lambda a=axis: self._faces(a),
                  reads=("Fp", "Fm", "Fp_i", "Fm_i", "phi", "Fv", "Fd"),
                  writes=(f"F{ax}", f"F{ax}_i"))
        g.add("species_update", lambda: self.species_advance(dt),
              reads=("Fx_i", "Fy_i", "Fz_i"), writes=("rhoi",))
        g.add("flow_update", lambda: self.flow_advance(dt),
              reads=("Fx", "Fy", "Fz"), writes=("U",))
        return g

    def stage_graph(self, dt, s, base):
        g = self.flux_graph(dt)
        g.add("blend", lambda: self._blend(s, base), reads=("U", "rhoi"), writes=("U", "rhoi"))
        g.add("convert", self.convert, reads=("U", "rhoi", "Q"), writes=("Q",))
        g.add("ghosts", self.fill, reads=("Q", "rhoi"), writes=("Q", "rhoi", "Yi"), sync=True)
        return g

    def _blend(self, s, base):
        st = self.state
        w = SSPRK3_WEIGHTS[s]
        np.copyto(st.U, ssp_blend(base.U, st.U, w))
        np.copyto(st.rhoi, ssp_blend(base.rhoi, st.rhoi, w))

    # ------------------------
    # time stepping
    # ------------------------
    def stage(self, dt, s, base):
        self.stage_graph(dt, s, base).run()

    def step(self, dt):
        if self.chemistry is not None:
            self.reaction_half_step(0.5*dt)
        base = StageBaseline.capture(self.state)
        for s in range(3):
            self.stage(dt, s, base)
        if self.chemistry is not None:
            self.reaction_half_step(0.5*dt)

    def advance(self, dt, step):
        """Health check (at the configured cadence) before any mutation, then one step."""
        every = self.cfg.check_nan_every
        if every > 0 and step % every == 0:
            self.check_health(step)
        self.step(dt)

    def reaction_half_step(self, dt):
        st = self.state
        I = self.cfg.interior
        ns = st.rhoi.shape[0]
        shape = st.Q[0][I].shape
        T = st.Q[5][I].ravel()
        p = st.Q[4][I].ravel()
        rho = st.Q[0][I].ravel()
        Y = st.Yi[(slice(None),) + I].reshape(ns, -1).T

        Y_new, T_new = self.chemistry.react(T, p, rho, Y, dt)

        st.rhoi[(slice(None),) + I] = (rho[:, None]*Y_new).T.reshape((ns,) + shape)
        st.Q[5][I] = T_new.reshape(shape)
        # energy unchanged: T follows from U and the new composition
        self.convert()
        self.fill()

    def check_health(self, step):
        st = self.state
        nbad, first = find_bad_cells(st.Q, st.U, st.rhoi, self.ng)
        total = self.comm.allreduce(nbad, op=MPI.SUM)
        if total > 0:
            detail = f"{total} bad cells"
            if nbad:
                detail += f"; rank {self.rank} first at {first}"
            raise NumericalDivergenceError(step, detail)

    def compute_dt(self):
        cfg = self.cfg
        if cfg.dt is not None:
            return cfg.dt
        st, th = self.state, self.thermo
        sound_speed_field(st.Q, st.Yi, st.cs, th.nasa, th.tmid, th.W)
        smax = spectral_radius(st.Q, st.cs, self.metrics.dxi, self.ng)
        smax = self.comm.allreduce(smax, op=MPI.MAX)
        return cfg.cfl / max(smax, 1e-300)

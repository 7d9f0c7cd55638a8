#!/usr/bin/env python3
# core/state.py
# Field containers for one rank: allocated once, mutated in place every stage.
import numpy as np

# primitive layout
RHO, UX, UY, UZ, PRS, TMP = range(6)
NPRIM = 6
# conservative layout
NCONS = 5
# viscous cell fluxes: 3 momentum + energy
NVISC = 4


class FlowState:
    """All per-rank arrays the time loop touches.

    Primary state: Q (primitive), U (conservative), rhoi (species densities),
    Yi (mass fractions). Everything else is derived each stage and kept only
    to avoid reallocation: sensor, transport coefficients, split and face
    fluxes, cell-centred viscous fluxes and mixing temporaries.
    """

    def __init__(self, cfg):
        self.cfg = cfg
        ns = cfg.nspecs
        shape = cfg.shape_local
        nxp, ny, nz = cfg.nxp, cfg.ny, cfg.nz
        z = lambda *lead: np.zeros(lead + shape)

        self.Q = z(NPRIM)
        self.U = z(NCONS)
        self.rhoi = z(ns)
        self.Yi = z(ns)

        self.phi = np.zeros(shape)
        self.mu = np.zeros(shape)
        self.lam = np.zeros(shape)
        self.cs = np.zeros(shape)
        self.D = z(ns)
        # mixing temporaries
        self.Xi = z(ns)
        self.mui = z(ns)
        self.Dij = z(ns*ns)

        # split fluxes (reused across directions)
        self.Fp = z(NCONS)
        self.Fm = z(NCONS)
        self.Fp_i = z(ns)
        self.Fm_i = z(ns)
        # face fluxes
        self.Fx = np.zeros((NCONS, nxp + 1, ny, nz))
        self.Fy = np.zeros((NCONS, nxp, ny + 1, nz))
        self.Fz = np.zeros((NCONS, nxp, ny, nz + 1))
        self.Fx_i = np.zeros((ns, nxp + 1, ny, nz))
        self.Fy_i = np.zeros((ns, nxp, ny + 1, nz))
        self.Fz_i = np.zeros((ns, nxp, ny, nz + 1))
        # cell-centred diffusive fluxes per direction
        self.Fv = np.zeros((3, NVISC) + shape)
        self.Fd = np.zeros((3, ns) + shape)

    @property
    def interior(self):
        return self.cfg.interior

    def face_fluxes(self, axis):
        return (self.Fx, self.Fy, self.Fz)[axis], (self.Fx_i, self.Fy_i, self.Fz_i)[axis]

    def buffers(self):
        """Name -> array map used by the stage task graph."""
        return {name: getattr(self, name) for name in (
            "Q", "U", "rhoi", "Yi", "phi", "mu", "lam", "cs", "D", "Xi", "mui", "Dij",
            "Fp", "Fm", "Fp_i", "Fm_i", "Fx", "Fy", "Fz", "Fx_i", "Fy_i", "Fz_i", "Fv", "Fd")}

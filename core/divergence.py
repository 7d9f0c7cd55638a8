#!/usr/bin/env python3
# core/divergence.py
# Finite-volume update from face fluxes.


def flux_divergence(Fx, Fy, Fz):
    return (Fx[:, 1:, :, :] - Fx[:, :-1, :, :]) \
        + (Fy[:, :, 1:, :] - Fy[:, :, :-1, :]) \
        + (Fz[:, :, :, 1:] - Fz[:, :, :, :-1])


def apply_divergence(arr, Fx, Fy, Fz, J, dt, ng):
    """arr[cell] -= dt/J[cell] * (dFx + dFy + dFz) on interior cells; ghosts untouched."""
    s = (slice(ng, -ng),) * 3
    arr[(slice(None),) + s] -= dt / J[s][None] * flux_divergence(Fx, Fy, Fz)

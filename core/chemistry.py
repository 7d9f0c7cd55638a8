#!/usr/bin/env python3
# core/chemistry.py
# Reaction providers for the operator-split half-steps.
# react(T, p, rho, Y, dt) works on flat batches of cells and never mutates
# its inputs; it returns (Y_new, T_guess) with Y_new summing to one.
import json5
import numpy as np

from core.errors import ConfigurationError
from utils.backend import get_backend, to_device, to_numpy


class ChemistryProvider:
    name = None

    def react(self, T, p, rho, Y, dt):
        raise NotImplementedError


# ------------------------
# Box-Cox transform of mass fractions
# ------------------------
def boxcox(Y, lam, xp=np):
    return (xp.power(Y, lam) - 1.0) / lam


def inv_boxcox(Z, lam, xp=np):
    # clamp negative bases to zero; NaN passes through
    base = xp.maximum(lam*Z + 1.0, 0.0)
    return xp.power(base, 1.0/lam)


def _gelu(x, xp):
    return 0.5*x*(1.0 + xp.tanh(0.7978845608028654*(x + 0.044715*x*x*x)))


ACTIVATIONS = {
    "gelu": _gelu,
    "tanh": lambda x, xp: xp.tanh(x),
    "relu": lambda x, xp: xp.maximum(x, 0.0),
    "silu": lambda x, xp: x / (1.0 + xp.exp(-x)),
}


class SurrogateChemistry(ChemistryProvider):
    """
    Three dense layers, weights (in, out) from an .npz with w1 b1 w2 b2 w3 b3.
    Input row [T, p, BoxCox(Y_1..N)] is standardised with inputs_mean/std;
    the output row [dT/dt, dBoxCox(Y_k)/dt] is de-standardised with
    labels_mean/std and integrated over dt with one explicit step.
    """
    name = "surrogate"

    def __init__(self, weights_path, norm_path, nspecs, activation="gelu", backend="numpy"):
        self.xp, self.backend = get_backend(backend)
        if activation not in ACTIVATIONS:
            raise ConfigurationError(f"unknown surrogate activation {activation!r}")
        self.act = ACTIVATIONS[activation]
        try:
            w = np.load(weights_path)
            with open(norm_path, "r") as f:
                norm = json5.load(f)
        except OSError as exc:
            raise ConfigurationError(f"cannot load surrogate model: {exc}") from exc

        xp = self.xp
        f32 = lambda a: to_device(xp, a)
        self.layers = [(f32(w[f"w{n}"]), f32(w[f"b{n}"])) for n in (1, 2, 3)]
        self.lam = float(norm["lambda"])
        self.in_mean = f32(norm["inputs_mean"])
        self.in_std = f32(norm["inputs_std"])
        self.out_mean = f32(norm["labels_mean"])
        self.out_std = f32(norm["labels_std"])

        nin, nout = nspecs + 2, nspecs + 1
        if self.layers[0][0].shape[0] != nin or self.layers[-1][0].shape[1] != nout:
            raise ConfigurationError(
                f"surrogate layers {self.layers[0][0].shape} .. {self.layers[-1][0].shape} "
                f"do not match {nspecs} species")
        if (self.in_mean.shape[0] != nin or self.in_std.shape[0] != nin
                or self.out_mean.shape[0] != nout or self.out_std.shape[0] != nout):
            raise ConfigurationError("surrogate normalisation size does not match species count")

    def forward(self, x):
        h = x
        for n, (W, b) in enumerate(self.layers):
            h = h @ W + b
            if n < len(self.layers) - 1:
                h = self.act(h, self.xp)
        return h

    def react(self, T, p, rho, Y, dt):
        xp = self.xp
        T_d = xp.asarray(T, dtype=xp.float32)
        p_d = xp.asarray(p, dtype=xp.float32)
        Z = boxcox(xp.asarray(Y, dtype=xp.float32), self.lam, xp)

        x = xp.concatenate([T_d[:, None], p_d[:, None], Z], axis=1)
        x = (x - self.in_mean) / self.in_std
        rate = self.forward(x) * self.out_std + self.out_mean

        T_new = T_d + rate[:, 0]*dt
        Y_new = inv_boxcox(Z + rate[:, 1:]*dt, self.lam, xp)
        Y_new = Y_new / xp.sum(Y_new, axis=1, keepdims=True)
        return to_numpy(Y_new), to_numpy(T_new)


class CanteraChemistry(ChemistryProvider):
    """Constant-volume ideal-gas reactor per cell, integrated over dt by CVODES."""
    name = "cantera"

    def __init__(self, mech, species, rtol=1e-9, atol=1e-15):
        try:
            import cantera as ct
        except Exception as exc:
            raise RuntimeError(f"cantera chemistry requested but unavailable: {exc}") from exc
        self.ct = ct
        self.gas = ct.Solution(mech)
        idx = []
        for name in species:
            if name not in self.gas.species_names:
                raise ConfigurationError(f"species {name!r} not in mechanism {mech}")
            idx.append(self.gas.species_index(name))
        self.idx = np.array(idx)
        self.rtol = rtol
        self.atol = atol

    def react(self, T, p, rho, Y, dt):
        ct = self.ct
        n = T.shape[0]
        Y_new = np.empty_like(Y)
        T_new = np.empty(n)
        Yfull = np.zeros(self.gas.n_species)
        for c in range(n):
            Yfull[:] = 0.0
            Yfull[self.idx] = Y[c]
            self.gas.TDY = T[c], rho[c], Yfull
            reactor = ct.IdealGasReactor(self.gas)
            net = ct.ReactorNet([reactor])
            net.rtol = self.rtol
            net.atol = self.atol
            net.advance(dt)
            y = reactor.thermo.Y[self.idx]
            Y_new[c] = y / y.sum()
            T_new[c] = reactor.T
        return Y_new, T_new


def make_chemistry(cfg):
    if cfg.reaction == "none":
        return None
    if cfg.reaction == "surrogate":
        return SurrogateChemistry(cfg.surrogate_weights, cfg.surrogate_norm, cfg.nspecs,
                                  activation=cfg.surrogate_activation, backend=cfg.backend)
    if cfg.reaction == "cantera":
        return CanteraChemistry(cfg.cantera_mech, cfg.species,
                                rtol=cfg.cantera_rtol, atol=cfg.cantera_atol)
    raise ConfigurationError(f"unknown reaction mode {cfg.reaction!r}")

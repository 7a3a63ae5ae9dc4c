from __future__ import annotations

import threading
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

"""
ML Tensors (buffers numériques jetables).

Rôle (fonctionnel) :
- TensorBuffer : bloc numérique de forme fixe (numpy) transmis au / reçu du modèle.
  Il doit être libéré (dispose) après usage ; lire un buffer libéré est une erreur.
- TensorAllocator : seul point de création des buffers. Compte les buffers vivants
  (live_count), ce qui rend une fuite observable (tests, /system/status).
- TensorScope : acquisition “scopée” : tout buffer créé dans un `with allocator.scope()`
  est libéré à la sortie du bloc, y compris sur exception.

Notes :
- Les entrées sont des batchs d’un seul échantillon : forme [1, width].
- dispose() est idempotent : le compteur n’est décrémenté qu’une fois.
"""

Shape = Tuple[int, ...]


class TensorBuffer:
    """Buffer numérique jetable (wrapper autour d’un ndarray)."""

    def __init__(self, array: np.ndarray, allocator: "TensorAllocator") -> None:
        self._array: Optional[np.ndarray] = array
        self._allocator = allocator

    @property
    def shape(self) -> Shape:
        return tuple(self._checked().shape)

    @property
    def disposed(self) -> bool:
        return self._array is None

    def _checked(self) -> np.ndarray:
        if self._array is None:
            raise RuntimeError("TensorBuffer already disposed")
        return self._array

    def numpy(self) -> np.ndarray:
        """Vue ndarray (à ne pas conserver au-delà de la vie du buffer)."""
        return self._checked()

    def data(self) -> List[float]:
        """Contenu aplati en liste de floats Python (copie)."""
        return [float(v) for v in self._checked().ravel()]

    def dispose(self) -> None:
        if self._array is None:
            return
        self._array = None
        self._allocator._release()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"shape={self.shape}"
        return f"TensorBuffer({state})"


class TensorAllocator:
    """
    Allocateur instrumenté.

    - allocated_total : nombre de buffers créés depuis le démarrage
    - live_count      : buffers créés mais pas encore libérés
    """

    def __init__(self, dtype: str = "float64") -> None:
        self.dtype = np.dtype(dtype)
        self._lock = threading.Lock()
        self._live = 0
        self._allocated_total = 0

    @property
    def live_count(self) -> int:
        return self._live

    @property
    def allocated_total(self) -> int:
        return self._allocated_total

    def _track(self, array: np.ndarray) -> TensorBuffer:
        with self._lock:
            self._live += 1
            self._allocated_total += 1
        return TensorBuffer(array, self)

    def _release(self) -> None:
        with self._lock:
            self._live -= 1

    def tensor2d(self, values: Iterable[float], shape: Optional[Shape] = None) -> TensorBuffer:
        """Crée un buffer [1, n] (ou de forme `shape`) à partir de valeurs numériques."""
        array = np.asarray(list(values), dtype=self.dtype)
        array = array.reshape(shape if shape is not None else (1, array.size))
        return self._track(array)

    def wrap(self, output: object) -> TensorBuffer:
        """Prend en charge une sortie de modèle (ndarray, liste, scalaire) comme buffer suivi."""
        array = np.atleast_2d(np.asarray(output, dtype=self.dtype))
        return self._track(array)

    def scope(self) -> "TensorScope":
        return TensorScope(self)


class TensorScope:
    """
    Portée d’allocation : libère tous ses buffers à la sortie (ordre inverse).

    Usage :
        with allocator.scope() as scope:
            x = scope.tensor2d(features)
            y = scope.wrap(model.predict(x.numpy()))
            raw = y.data()
    """

    def __init__(self, allocator: TensorAllocator) -> None:
        self._allocator = allocator
        self._buffers: List[TensorBuffer] = []

    def tensor2d(self, values: Sequence[float], shape: Optional[Shape] = None) -> TensorBuffer:
        buf = self._allocator.tensor2d(values, shape)
        self._buffers.append(buf)
        return buf

    def wrap(self, output: object) -> TensorBuffer:
        buf = self._allocator.wrap(output)
        self._buffers.append(buf)
        return buf

    def __enter__(self) -> "TensorScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        while self._buffers:
            self._buffers.pop().dispose()

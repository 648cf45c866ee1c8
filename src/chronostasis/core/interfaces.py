from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .types import Landmark


class ICamera(ABC):
    @abstractmethod
    def open(self) -> bool:
        pass

    @abstractmethod
    def read_frame(self) -> Optional[np.ndarray]:
        pass

    @abstractmethod
    def close(self):
        pass


class IPoseSource(ABC):
    @abstractmethod
    def process(self, rgb: np.ndarray) -> Optional[List[Optional[Landmark]]]:
        pass

    @abstractmethod
    def close(self):
        pass

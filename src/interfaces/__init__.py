"""Public interface definitions for every external collaborator.

Sources, storage and third-party services are reached only through the
abstract base classes in this package.  Concrete adapters live in
``src/providers/`` and are wired together in ``src/main.py``.

    Interface                   ->  Concrete implementations
    ----------------------------------------------------------------
    IScanner                    ->  BeatportScanner, TraxsourceScanner,
                                    StoredTrackScanner
    ITrackStore                 ->  SQLiteTrackStore
    IConnectionStore            ->  SQLiteConnectionStore
    IAudioRecognitionProvider   ->  ACRCloudRecognitionProvider,
                                    AuddRecognitionProvider
    IGeocodingProvider          ->  NominatimGeocodingProvider
"""

from src.interfaces.connection_store import IConnectionStore
from src.interfaces.geocoding_provider import IGeocodingProvider
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.interfaces.scanner import IScanner
from src.interfaces.track_store import ITrackStore

__all__ = [
    "IAudioRecognitionProvider",
    "IConnectionStore",
    "IGeocodingProvider",
    "IScanner",
    "ITrackStore",
]

"""Audio-recognition providers, tried in order by the identification service.

    1. ACRCloudRecognitionProvider -- needs ACRCLOUD_ACCESS_KEY and ACRCLOUD_SECRET_KEY.
       Stronger coverage for electronic and DJ music.
    2. AuddRecognitionProvider     -- needs AUDD_API_KEY.
"""

from src.providers.recognition.acrcloud_provider import ACRCloudRecognitionProvider
from src.providers.recognition.audd_provider import AuddRecognitionProvider

__all__ = ["ACRCloudRecognitionProvider", "AuddRecognitionProvider"]

"""
Catalog Models

Typed mappings of TIDAL catalog responses: tracks, albums, artists,
playlists, paginated lists, search results and stream descriptors.
These are direct JSON mappings; no logic lives here beyond small helpers.
"""

import base64
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import Field, ValidationError

from ..exceptions import DecodeError
from .auth_models import TidalModel

T = TypeVar("T")

IMAGE_BASE_URL = "https://resources.tidal.com/images"


def _image_url(image_id: Optional[str], height: int, width: int) -> Optional[str]:
    if not image_id:
        return None
    return f"{IMAGE_BASE_URL}/{image_id.replace('-', '/')}/{height}x{width}.jpg"


class DeviceType(str, Enum):
    """Device type sent with catalog requests."""
    BROWSER = "BROWSER"


class AudioQuality(str, Enum):
    """Audio quality levels available for streaming."""
    LOW = "LOW"
    HIGH = "HIGH"
    LOSSLESS = "LOSSLESS"
    HI_RES_LOSSLESS = "HI_RES_LOSSLESS"

    @classmethod
    def _missing_(cls, value):
        # Catalog payloads spell it HIRES_LOSSLESS
        if value == "HIRES_LOSSLESS":
            return cls.HI_RES_LOSSLESS
        return None


class Order(str, Enum):
    """Sort order for favorites listings."""
    DATE = "DATE"


class OrderDirection(str, Enum):
    """Sort direction for favorites listings."""
    ASC = "ASC"
    DESC = "DESC"


class AlbumType(str, Enum):
    """Album release type, also used to filter artist albums."""
    ALBUM = "ALBUM"
    LP = "LP"
    EP = "EP"
    SINGLE = "SINGLE"
    EPS_AND_SINGLES = "EPSANDSINGLES"
    COMPILATIONS = "COMPILATIONS"


class ResourceType(str, Enum):
    """Resource kinds used for search filtering."""
    ARTIST = "ARTIST"
    ALBUM = "ALBUM"
    TRACK = "TRACK"
    VIDEO = "VIDEO"
    PLAYLIST = "PLAYLIST"
    USER_PROFILE = "USER_PROFILE"

    @classmethod
    def parse(cls, value: str) -> "ResourceType":
        """Parse singular or plural names ("TRACK" or "TRACKS")."""
        upper = value.upper()
        try:
            return cls(upper)
        except ValueError:
            if upper.endswith("S"):
                return cls(upper[:-1])
            raise

    @property
    def search_type(self) -> str:
        return f"{self.value}S"


class MediaMetadata(TidalModel):
    tags: List[str] = Field(default_factory=list)


class ArtistRole(TidalModel):
    category: str
    category_id: int


class ArtistSummary(TidalModel):
    """Artist reference embedded in tracks and albums."""

    id: int
    name: str
    picture: Optional[str] = None
    contains_cover: bool = False
    popularity: Optional[int] = None
    artist_type: Optional[str] = Field(default=None, alias="type")

    def picture_url(self, height: int, width: int) -> Optional[str]:
        return _image_url(self.picture, height, width)


class Artist(TidalModel):
    id: int
    name: str
    picture: Optional[str] = None
    url: Optional[str] = None
    user_id: Optional[int] = None
    popularity: Optional[int] = None
    artist_types: List[str] = Field(default_factory=list)
    artist_roles: List[ArtistRole] = Field(default_factory=list)
    selected_album_cover_fallback: Optional[str] = None
    mixes: Dict[str, str] = Field(default_factory=dict)
    spotlighted: bool = False

    def picture_url(self, height: int, width: int) -> Optional[str]:
        """Artist picture, falling back to the selected album cover."""
        return _image_url(self.picture or self.selected_album_cover_fallback, height, width)


class FavoriteArtist(TidalModel):
    created: str
    item: Artist


class AlbumSummary(TidalModel):
    """Album reference embedded in tracks."""

    id: int
    title: str
    cover: Optional[str] = None
    release_date: Optional[str] = None
    vibrant_color: Optional[str] = None
    video_cover: Optional[str] = None


class Album(TidalModel):
    id: int
    title: str
    artists: List[ArtistSummary] = Field(default_factory=list)
    audio_quality: Optional[AudioQuality] = None
    duration: int = 0
    explicit: bool = False
    popularity: int = 0
    media_metadata: Optional[MediaMetadata] = None
    cover: Optional[str] = None
    video_cover: Optional[str] = None
    vibrant_color: Optional[str] = None
    release_date: Optional[str] = None
    stream_start_date: Optional[str] = None
    copyright: Optional[str] = None
    number_of_tracks: int = 0
    number_of_videos: int = 0
    number_of_volumes: int = 0
    upc: Optional[str] = None
    url: Optional[str] = None
    version: Optional[str] = None
    album_type: AlbumType = Field(default=AlbumType.ALBUM, alias="type")
    allow_streaming: bool = True
    stream_ready: bool = True
    pay_to_stream: bool = False
    premium_streaming_only: bool = False
    audio_modes: List[str] = Field(default_factory=list)

    def cover_url(self, height: int, width: int) -> Optional[str]:
        return _image_url(self.cover, height, width)


class FavoriteAlbum(TidalModel):
    created: str
    item: Album


class Track(TidalModel):
    id: int
    title: str
    track_number: int = 0
    volume_number: int = 1
    artists: List[ArtistSummary] = Field(default_factory=list)
    album: Optional[AlbumSummary] = None
    audio_quality: Optional[AudioQuality] = None
    duration: int = 0
    explicit: bool = False
    isrc: Optional[str] = None
    popularity: int = 0
    version: Optional[str] = None
    media_metadata: Optional[MediaMetadata] = None
    copyright: Optional[str] = None
    url: Optional[str] = None
    bpm: Optional[int] = None
    upload: Optional[bool] = None


class FavoriteTrack(TidalModel):
    created: str
    item: Track


class SuggestedTrack(TidalModel):
    track: Track
    sources: List[str] = Field(default_factory=list)


class TrackStream(TidalModel):
    """Stream descriptor for a track at a given quality."""

    track_id: int
    audio_quality: AudioQuality
    asset_presentation: Optional[str] = None
    audio_mode: Optional[str] = None
    codec: Optional[str] = None
    security_token: Optional[str] = None
    security_type: Optional[str] = None
    streaming_session_id: Optional[str] = None
    urls: List[str] = Field(default_factory=list)

    def primary_url(self) -> Optional[str]:
        return self.urls[0] if self.urls else None


class TrackPlaybackInfo(TidalModel):
    track_id: int
    audio_quality: str
    asset_presentation: Optional[str] = None
    audio_mode: Optional[str] = None
    bit_depth: Optional[int] = None
    sample_rate: Optional[int] = None
    manifest: str
    manifest_hash: Optional[str] = None
    manifest_mime_type: str
    album_peak_amplitude: Optional[float] = None
    album_replay_gain: Optional[float] = None
    track_peak_amplitude: Optional[float] = None
    track_replay_gain: Optional[float] = None

    def unpack_manifest(self) -> str:
        """Decode the base64 manifest (XML for DASH, JSON otherwise)."""
        return base64.b64decode(self.manifest).decode("utf-8")


class TrackDashPlaybackInfo(TrackPlaybackInfo):
    audio_quality: AudioQuality


class PlaylistCreator(TidalModel):
    id: Optional[int] = None


class Playlist(TidalModel):
    uuid: str
    title: str
    url: Optional[str] = None
    creator: PlaylistCreator = Field(default_factory=PlaylistCreator)
    description: Optional[str] = ""
    number_of_tracks: int = 0
    number_of_videos: int = 0
    duration: int = 0
    popularity: int = 0
    last_updated: Optional[str] = None
    created: Optional[str] = None
    last_item_added_at: Optional[str] = None
    playlist_type: Optional[str] = Field(default=None, alias="type")
    public_playlist: bool = False
    image: Optional[str] = None
    square_image: Optional[str] = None
    custom_image_url: Optional[str] = None
    promoted_artists: Optional[List[ArtistSummary]] = None
    etag: Optional[str] = None

    def image_url(self, height: int, width: int) -> Optional[str]:
        return _image_url(self.image, height, width)

    def square_image_url(self, size: int) -> Optional[str]:
        return _image_url(self.square_image, size, size)


class PlaylistRecommendationItem(TidalModel):
    item: Track
    item_type: Optional[str] = Field(default=None, alias="type")


class Page(TidalModel, Generic[T]):
    """A paginated list response."""

    items: List[T] = Field(default_factory=list)
    offset: int = 0
    limit: int = 0
    total: int = Field(default=0, alias="totalNumberOfItems")
    etag: Optional[str] = None

    def is_empty(self) -> bool:
        return self.total == 0

    def num_left(self) -> int:
        """Number of items after this page."""
        return max(self.total - self.offset - len(self.items), 0)


class TopHit(TidalModel):
    """One entry of the mixed top-hits list."""

    type: str
    value: Dict[str, Any] = Field(default_factory=dict)

    @property
    def resource_type(self) -> ResourceType:
        try:
            return ResourceType.parse(self.type)
        except ValueError as e:
            raise DecodeError(f"Unknown top hit type: {self.type}") from e

    def resource(self) -> Any:
        """Decode the value into its typed model; videos and profiles stay raw."""
        decoders = {
            ResourceType.ARTIST: Artist,
            ResourceType.ALBUM: Album,
            ResourceType.TRACK: Track,
            ResourceType.PLAYLIST: Playlist,
        }
        model = decoders.get(self.resource_type)
        if model is None:
            return self.value
        try:
            return model.model_validate(self.value)
        except ValidationError as e:
            raise DecodeError(f"Top hit did not match {model.__name__}: {e}") from e


class SearchResults(TidalModel):
    albums: Page[Album] = Field(default_factory=Page[Album])
    artists: Page[Artist] = Field(default_factory=Page[Artist])
    tracks: Page[Track] = Field(default_factory=Page[Track])
    playlists: Page[Playlist] = Field(default_factory=Page[Playlist])
    videos: Page[Dict[str, Any]] = Field(default_factory=Page[Dict[str, Any]])
    user_profiles: Page[Dict[str, Any]] = Field(default_factory=Page[Dict[str, Any]])
    top_hits: List[TopHit] = Field(default_factory=list)

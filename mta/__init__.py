"""Shared utilities for working with drum-pad sampler ``.MTA`` backups."""

from .container import (  # noqa: F401
    DIRECTORY_OFFSET,
    MAGIC,
    MAGIC_OFFSET,
    ChunkHeader,
    DirectoryEntry,
    FormatError,
    YSFCContainer,
    read_directory,
)
from .structs import (  # noqa: F401
    CHUNK_HEADER_SIZE,
    AbsOffset,
    ChunkFrame,
    ChunkRel,
    DataRel,
)
from .kit_reader import (  # noqa: F401
    KIT_BLOCK_SIZE,
    KIT_SLOT_COUNT,
    VOICE_FIELD_OFFSETS,
    VOICE_RECORD_SIZE,
    KitBlock,
    KitEntry,
    VoiceEntry,
    extract_kit_blocks,
    find_next_voice,
    iter_voices,
    read_kit_entries,
)
from .wave_reader import (  # noqa: F401
    WAVE_TABLE_CAP,
    WaveBlock,
    WaveEntry,
    decode_pcm,
    encode_pcm,
    extract_wave_blocks,
    read_wave_entries,
)
from .writer import (  # noqa: F401
    build_dwav_chunk,
    build_ewav_chunk,
    rebuild_wave_sections,
    relocate_directory,
    write_in_place,
)
from .mta_file import MtaFile  # noqa: F401
from .editor import add_wave, commit, delete_wave, edit_voice  # noqa: F401

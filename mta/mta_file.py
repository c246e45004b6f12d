from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .container import (
    KIT_DATA,
    KIT_DIRECTORY,
    WAVE_DATA,
    WAVE_DIRECTORY,
    YSFCContainer,
)
from .kit_reader import KitBlock, KitEntry, extract_kit_blocks, read_kit_entries
from .structs import AbsOffset
from .wave_reader import WaveBlock, WaveEntry, extract_wave_blocks, read_wave_entries
from .writer import rebuild_wave_sections, write_in_place


def _declared_end(container: YSFCContainer) -> Optional[AbsOffset]:
    header = container.header(WAVE_DIRECTORY)
    if header is None or header.end.value > len(container.raw):
        return None
    return header.end


@dataclass(frozen=True)
class MtaFile:
    """Decoded ``.MTA`` backup: kit bank, kit blocks and user waves.

    Instances are snapshots.  Edits (see ``mta.editor``) return new
    instances; ``to_bytes`` picks the in-place writer unless the wave
    collection was structurally changed.

    Round-trip guarantee: ``MtaFile.from_bytes(data).to_bytes() == data``.
    """

    container: YSFCContainer
    kits: Tuple[KitEntry, ...]
    kit_blocks: Tuple[KitBlock, ...]
    waves: Tuple[WaveEntry, ...]
    wave_blocks: Tuple[WaveBlock, ...]
    waves_changed: bool = False

    @classmethod
    def from_bytes(cls, data: bytes) -> "MtaFile":
        container = YSFCContainer.from_bytes(data)
        raw = container.raw

        kit_frame = container.frame(KIT_DIRECTORY)
        kit_data_frame = container.frame(KIT_DATA)
        kits = read_kit_entries(raw, kit_frame)
        kit_blocks = extract_kit_blocks(raw, kit_data_frame, kits)

        waves = []
        wave_blocks = []
        wave_frame = container.frame(WAVE_DIRECTORY)
        wave_data_frame = container.frame(WAVE_DATA)
        if wave_frame is not None and wave_data_frame is not None:
            waves = read_wave_entries(raw, wave_frame, _declared_end(container))
            wave_blocks = extract_wave_blocks(raw, wave_data_frame, waves)

        return cls(
            container=container,
            kits=tuple(kits),
            kit_blocks=tuple(kit_blocks),
            waves=tuple(waves),
            wave_blocks=tuple(wave_blocks),
        )

    @property
    def raw(self) -> bytes:
        return self.container.raw

    def kit_block_for(self, kit: KitEntry) -> Optional[KitBlock]:
        for block in self.kit_blocks:
            if block.seq_id == kit.seq_id:
                return block
        return None

    def kit_block_containing(self, byte_offset: AbsOffset) -> Optional[KitBlock]:
        for block in self.kit_blocks:
            if block.voice_at(byte_offset) is not None:
                return block
        return None

    def wave_block_for(self, wave: WaveEntry) -> Optional[WaveBlock]:
        for block in self.wave_blocks:
            if block.seq_id == wave.seq_id:
                return block
        return None

    def to_bytes(self) -> bytes:
        if self.waves_changed:
            return rebuild_wave_sections(self)
        return write_in_place(self)

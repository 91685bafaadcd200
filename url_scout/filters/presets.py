# File: url_scout/filters/presets.py
"""url_scout.filters.presets: named shorthands that expand to extension rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Sequence

from url_scout.errors import ConfigError

__all__: Sequence[str] = ("Preset", "PRESETS", "resolve_preset")

IMAGE_EXTENSIONS: FrozenSet[str] = frozenset(
    """
    png jpg jpeg gif svg webp bmp ico tiff tif heic heif raw psd ai eps avif jfif jp2 jpx
    apng cr2 nef orf arw dng pgm pbm ppm pnm exr xcf pcx tga emf wmf jxr hdp wdp cur dcm
    wbmp j2k art jng 3fr ari srf sr2 bay crw kdc erf mrw rw2 pef dicom djvu fpx hdr mng ora
    pic rgb rgba xbm xpm dpx fits flif img mpo psb
    """.split()
)

FONT_EXTENSIONS: FrozenSet[str] = frozenset(
    "ttf otf woff woff2 eot fon fnt svg ttc dfont pfa pfb".split()
)

DOCUMENT_EXTENSIONS: FrozenSet[str] = frozenset(
    "pdf doc docx xls xlsx ppt pptx txt csv rtf odt ods odp epub mobi azw3 fb2 djvu epub3 xps".split()
)

AUDIO_EXTENSIONS: FrozenSet[str] = frozenset(
    "mp3 wav flac aac ogg wma m4a opus aiff alac dsd dff dsf pcm aifc au snd caf ra ram".split()
)

VIDEO_EXTENSIONS: FrozenSet[str] = frozenset(
    """
    mp4 mkv avi mov wmv flv webm mpeg mpg 3gp 3g2 m4v f4v f4p f4a f4b asf rmvb rm dat ts vob
    """.split()
)

JS_EXTENSIONS: FrozenSet[str] = frozenset(
    "js ts jsx tsx mjs cjs vue json coffee es6 es svelte astro njk map".split()
)

STYLE_EXTENSIONS: FrozenSet[str] = frozenset(
    "css scss sass less stylus postcss pcss cssm cssx cssb".split()
)


@dataclass(frozen=True, slots=True)
class Preset:
    """Extension rule set a preset expands to."""

    name: str
    include_extensions: FrozenSet[str] = frozenset()
    exclude_extensions: FrozenSet[str] = frozenset()


PRESETS: Dict[str, Preset] = {
    "no-resources": Preset(
        "no-resources",
        exclude_extensions=IMAGE_EXTENSIONS
        | FONT_EXTENSIONS
        | DOCUMENT_EXTENSIONS
        | AUDIO_EXTENSIONS
        | VIDEO_EXTENSIONS
        | JS_EXTENSIONS
        | STYLE_EXTENSIONS,
    ),
    "no-images": Preset("no-images", exclude_extensions=IMAGE_EXTENSIONS),
    "no-fonts": Preset("no-fonts", exclude_extensions=FONT_EXTENSIONS),
    "no-documents": Preset("no-documents", exclude_extensions=DOCUMENT_EXTENSIONS),
    "no-videos": Preset("no-videos", exclude_extensions=VIDEO_EXTENSIONS),
    "only-js": Preset("only-js", include_extensions=JS_EXTENSIONS),
    "only-style": Preset("only-style", include_extensions=STYLE_EXTENSIONS),
    "only-fonts": Preset("only-fonts", include_extensions=FONT_EXTENSIONS),
    "only-documents": Preset("only-documents", include_extensions=DOCUMENT_EXTENSIONS),
    "only-videos": Preset("only-videos", include_extensions=VIDEO_EXTENSIONS),
    "only-images": Preset("only-images", include_extensions=IMAGE_EXTENSIONS),
}

_ALIASES: Dict[str, str] = {
    "no-resource": "no-resources",
    "no-image": "no-images",
    "no-font": "no-fonts",
    "no-document": "no-documents",
    "no-video": "no-videos",
    "only-styles": "only-style",
}


def resolve_preset(name: str) -> Preset:
    """Look up a preset by name (case-insensitive, singular aliases accepted)."""
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return PRESETS[key]
    except KeyError:
        known = ", ".join(sorted(PRESETS))
        raise ConfigError(f"unknown filter preset {name!r} (known: {known})") from None

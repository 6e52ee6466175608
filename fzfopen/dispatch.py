"""
Decide which application should open a file.

The decision is based on the file's extension first and on its MIME-type
second. Both tables are read-only. If neither of them knows the file, no
application is selected and the caller is expected to use the starter
(the platform's generic opener) instead.
"""
# Stdlib
from types import MappingProxyType

PDF_VIEWER = 'pdf-viewer'
DOCX_VIEWER = 'docx-viewer'
IMAGE_VIEWER = 'image-viewer'
VIDEO_PLAYER = 'video-player'
SPREADSHEET_EDITOR = 'spreadsheet-editor'
WEB_BROWSER = 'web-browser'
TEXT_EDITOR = 'text-editor'

APPLICATIONS = (PDF_VIEWER, DOCX_VIEWER, IMAGE_VIEWER, VIDEO_PLAYER,
                SPREADSHEET_EDITOR, WEB_BROWSER, TEXT_EDITOR)

ASSOCIATIONS = (
    (PDF_VIEWER, 'pdf'),
    (DOCX_VIEWER, 'docx doc odt rtf'),
    (IMAGE_VIEWER, 'png jpg jpeg gif bmp webp svg tif tiff ico heic'),
    (VIDEO_PLAYER, 'mp4 mkv webm avi mov wmv flv m4v '
                   'mp3 flac wav ogg opus m4a aac'),
    (SPREADSHEET_EDITOR, 'xlsx xls ods csv tsv'),
    (WEB_BROWSER, 'html htm xhtml'),
)

EXTENSION_APPS = MappingProxyType(dict(
    (extension, app) for app, extensions in ASSOCIATIONS
    for extension in extensions.split()
))

TEXT_EXTENSIONS = frozenset('''
    txt md rst log tex org
    py pyi go c h cc cpp hpp rs java kt js jsx ts tsx lua rb pl php sh bash
    zsh fish vim el sql css scss
    json yaml yml toml ini cfg conf xml env lock
'''.split())

TEXT_MIMETYPES = frozenset([
    'application/json',
    'application/xml',
    'application/javascript',
    'application/x-shellscript',
    'application/x-empty',
    'inode/x-empty',
])

WORD_MIMETYPES = frozenset([
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.oasis.opendocument.text',
    'application/rtf',
])

SPREADSHEET_MIMETYPES = frozenset([
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.oasis.opendocument.spreadsheet',
])

# Checked in order, after the text types
MIME_PREFIX_APPS = (
    ('image/', IMAGE_VIEWER),
    ('video/', VIDEO_PLAYER),
    ('audio/', VIDEO_PLAYER),
)

EXACT_MIME_APPS = MappingProxyType(dict(
    [('application/pdf', PDF_VIEWER)] +
    [(mimetype, DOCX_VIEWER) for mimetype in WORD_MIMETYPES] +
    [(mimetype, SPREADSHEET_EDITOR) for mimetype in SPREADSHEET_MIMETYPES]
))

def is_text_mimetype(mimetype):
    return mimetype.startswith('text/') or mimetype in TEXT_MIMETYPES

def select_by_extension(extension, mimetype=''):
    """
    Return the application associated with the given `extension` or `None`.

    A file without extension is only handed to the text editor if its
    `mimetype` is unknown (empty) or looks like text. This is the only case
    where `mimetype` matters here.
    """
    extension = extension.lower().lstrip('.')
    if extension in EXTENSION_APPS:
        return EXTENSION_APPS[extension]
    if extension in TEXT_EXTENSIONS:
        return TEXT_EDITOR
    if not extension and (not mimetype or is_text_mimetype(mimetype)):
        return TEXT_EDITOR
    return None

def select_by_mimetype(mimetype):
    """
    Return the application associated with the given `mimetype` or `None`.
    """
    if not mimetype:
        return None
    if is_text_mimetype(mimetype):
        return TEXT_EDITOR
    for prefix, app in MIME_PREFIX_APPS:
        if mimetype.startswith(prefix):
            return app
    return EXACT_MIME_APPS.get(mimetype)

def select_app(extension, mimetype):
    """
    Return the application for a file with given `extension` and `mimetype`
    or `None` if the starter should be used. Extension rules take precedence
    over MIME rules.
    """
    return select_by_extension(extension, mimetype) or select_by_mimetype(mimetype)

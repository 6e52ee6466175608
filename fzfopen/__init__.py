"""
Pick a file with fzf and open it with a suitable application.

Some features:

- Run fzf inside the current terminal or inside a new terminal window
- Choose an application by the file's extension or MIME-type
- Fall back to the platform's generic opener (e.g. `xdg-open`)
- Start the chosen application detached from the current terminal
- Resolve commands and detect the user's shell in background threads
"""
__license__ = 'MIT'
__version__ = '0.1-dev'

from . import dispatch, launcher, mime, pathcache, picker, settings, shell

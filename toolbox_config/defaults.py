"""
Default configuration values for git-toolbox.

Constants shared by the configuration loader, the repository setup and the
git content filter.
"""

from typing import Dict, Tuple


# Configuration file at the root of the working tree
CONFIG_FILE = "git-toolbox.toml"

FILTER_NAME = "toolbox-filter"
FILTER_SECTION = f'filter "{FILTER_NAME}"'

# Repository-local git config set by `git toolbox setup`
GIT_CONFIG: Dict[Tuple[str, str], str] = {
    (FILTER_SECTION, "clean"): "git-toolbox gitfilter --clean %f",
    (FILTER_SECTION, "smudge"): "git-toolbox gitfilter --smudge %f",
    (FILTER_SECTION, "required"): "true",
}

GIT_FILTER_ATTR = f"filter={FILTER_NAME}"

GIT_COMMENT = "# this section is managed by git-toolbox. Please do not edit below this line!"

CONFIG_FILE_EXAMPLE = """\
# This is an example file, please edit me!
#
# Every [[dictionary]] section declares a Toolbox file managed by git-toolbox.
# Tag names are written without the leading backslash.

[[dictionary]]
name = "Test Lexical Dictionary"
path = "dictionaries/LexicalDic.txt"
record-tag = "lex"

# this dictionary uses unique IDs; the regular expression validates the IDs
# and breaks them down into a namespace and the id proper
unique-id = true
id-tag = "id"
id-spec = "(?P<namespace>[a-zA-Z]*)(?P<id>[0-9]+)"

[[dictionary]]
name = "Test Parsing Dictionary"
path = "dictionaries/ParsingDic.txt"
record-tag = "lex"
"""

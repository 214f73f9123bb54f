from appreg.constants import ICON_INFO, ICON_LOADING, ICON_SIGN_IN, SIGNIN_COMMAND_ID, SIGNIN_COMMAND_TEXT
from appreg.model.category import Category
from appreg.model.icon import Icon
from appreg.model.node.app_reg_node import AppRegNode

# ⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛⬛

# Single parentless nodes which replace the whole tree while it is in a non-APPLICATIONS state.
# Each call returns a fresh node.


def build_initialising_node() -> AppRegNode:
    return AppRegNode('Initialising extension', Category.INITIALISING, icon=Icon(ICON_LOADING))


def build_authenticating_node() -> AppRegNode:
    return AppRegNode('Waiting for authentication to complete', Category.AUTHENTICATING, icon=Icon(ICON_LOADING))


def build_sign_in_node() -> AppRegNode:
    return AppRegNode(SIGNIN_COMMAND_TEXT, Category.SIGN_IN, icon=Icon(ICON_SIGN_IN), command=SIGNIN_COMMAND_ID)


def build_empty_node() -> AppRegNode:
    return AppRegNode('No applications found', Category.EMPTY, icon=Icon(ICON_INFO))

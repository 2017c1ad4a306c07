#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Display names of archives, read from the device's ``config_hcb_rrd.xml``.

The file lists one ``rrdLogger`` element per archive::

    <Config>
      <rrdLogger>
        <uuid>3f7a...</uuid>
        <name>elec_quantity_nt</name>
        ...
      </rrdLogger>
    </Config>
"""

from lxml import etree

from .errors import ArchiveIOError
from .logging_config import logger

__all__ = ["read_device_names", "get_device_name"]


def read_device_names(xml_path):
    """ Map of uuid to display name for every rrdLogger in xml_path

    Raises
    ------
    ArchiveIOError
        If the file cannot be read or parsed
    """
    try:
        tree = etree.parse(str(xml_path))
    except (OSError, etree.XMLSyntaxError) as e:
        raise ArchiveIOError(f"Unable to open xml file {xml_path}: {e}") from e
    names = {}
    for logger_elem in tree.iter("rrdLogger"):
        uuid = logger_elem.findtext("uuid")
        name = logger_elem.findtext("name")
        if uuid is None or name is None:
            continue
        names[uuid.strip()] = name.strip()
    logger.debug(f"{len(names)} device names in {xml_path}")
    return names


def get_device_name(names, uuid):
    """ Display name of uuid, None when it is absent or blank """
    name = names.get(uuid)
    return name or None

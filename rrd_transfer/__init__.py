__version__ = "0.1.0"

from rrd_transfer.errors import *
from rrd_transfer.dat_file import *
from rrd_transfer.rra_time import *
from rrd_transfer.samples import *
from rrd_transfer.merge import *
from rrd_transfer.transfer import *

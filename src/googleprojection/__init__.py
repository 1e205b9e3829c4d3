import logging

logger = logging.getLogger(__name__)


from googleprojection.arrays import *
from googleprojection.configutils import *
from googleprojection.coords import *
from googleprojection.log import *
from googleprojection.projection import *

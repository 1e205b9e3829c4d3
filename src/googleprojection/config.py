"""Library defaults. Override at runtime with

    configure_environment(googleprojection.config, projection_tile_size=512)
"""
from googleprojection.configutils import Setting

Setting.unlock()

# projection engine built by `engine_from_options()` with no arguments
projection = Setting()
projection.tile_size = 256
projection.max_zoom = 30
projection.precompute = True

# logging
log = Setting()
log.level = 'INFO'
log.format = '%(levelname)-4s %(asctime)s %(name)s %(lineno)d %(message)s'

Setting.lock()

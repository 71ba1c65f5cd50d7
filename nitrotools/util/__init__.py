"""General-purpose helpers: bit fields, fixed point, a byte cursor and small collections."""
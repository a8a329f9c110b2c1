# services/sample_stores.py
# Fixed dataset written by POST /init-stores.

SAMPLE_STORES = [
    # Beverly Hills / West LA (90210)
    {"store_name": "Walmart Supercenter", "address": "5500 Canoga Ave, Woodland Hills, CA 91367", "lat": 34.1783, "lon": -118.6014, "retailer": "Walmart"},
    {"store_name": "Ralphs", "address": "9610 Santa Monica Blvd, Beverly Hills, CA 90210", "lat": 34.0695, "lon": -118.4019, "retailer": "Ralphs"},
    {"store_name": "Walmart Neighborhood Market", "address": "1827 S Sepulveda Blvd, Los Angeles, CA 90025", "lat": 34.0458, "lon": -118.4529, "retailer": "Walmart"},
    {"store_name": "Ralphs", "address": "10861 Weyburn Ave, Los Angeles, CA 90024", "lat": 34.0611, "lon": -118.4456, "retailer": "Ralphs"},

    # New York (10001)
    {"store_name": "Walmart", "address": "517 E 117th St, New York, NY 10035", "lat": 40.7980, "lon": -73.9379, "retailer": "Walmart"},
    {"store_name": "Walmart", "address": "2307 Bartow Ave, Bronx, NY 10475", "lat": 40.8666, "lon": -73.8288, "retailer": "Walmart"},

    # Chicago (60601)
    {"store_name": "Walmart Supercenter", "address": "7535 S Ashland Ave, Chicago, IL 60620", "lat": 41.7569, "lon": -87.6648, "retailer": "Walmart"},
    {"store_name": "Walmart", "address": "2844 N Broadway, Chicago, IL 60657", "lat": 41.9344, "lon": -87.6457, "retailer": "Walmart"},

    # San Francisco (94102) and the San Fernando Valley
    {"store_name": "Walmart", "address": "1150 El Camino Real, San Bruno, CA 94066", "lat": 37.6358, "lon": -122.4213, "retailer": "Walmart"},
    {"store_name": "Ralphs", "address": "7905 Van Nuys Blvd, Los Angeles, CA 91402", "lat": 34.2186, "lon": -118.4490, "retailer": "Ralphs"},

    # Dallas (75201)
    {"store_name": "Walmart Supercenter", "address": "2401 W Wheatland Rd, Dallas, TX 75237", "lat": 32.6413, "lon": -96.8729, "retailer": "Walmart"},
    {"store_name": "Walmart Supercenter", "address": "8801 S Hampton Rd, Dallas, TX 75232", "lat": 32.6752, "lon": -96.8643, "retailer": "Walmart"},

    # Miami (33101)
    {"store_name": "Walmart Supercenter", "address": "7450 NW 87th Ave, Miami, FL 33178", "lat": 25.8446, "lon": -80.3369, "retailer": "Walmart"},
    {"store_name": "Walmart", "address": "10675 Caribbean Blvd, Cutler Bay, FL 33189", "lat": 25.5811, "lon": -80.3442, "retailer": "Walmart"},

    # Seattle (98101)
    {"store_name": "Walmart", "address": "18305 Alderwood Mall Pkwy, Lynnwood, WA 98037", "lat": 47.8304, "lon": -122.2713, "retailer": "Walmart"},
    {"store_name": "Walmart Supercenter", "address": "17432 Hwy 99, Lynnwood, WA 98037", "lat": 47.8190, "lon": -122.2889, "retailer": "Walmart"},

    # Atlanta (30303)
    {"store_name": "Walmart Supercenter", "address": "835 Martin Luther King Jr Dr SW, Atlanta, GA 30310", "lat": 33.7465, "lon": -84.4122, "retailer": "Walmart"},
    {"store_name": "Walmart", "address": "3580 Marketplace Blvd, East Point, GA 30344", "lat": 33.6768, "lon": -84.4505, "retailer": "Walmart"},
]

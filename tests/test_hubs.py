import unittest

from tedder.domain import Capability, Coordinate, Hub
from tedder.hubs import REGIONAL_HUBS, find_nearest_hub, get_hub_by_id, haversine_distance


class TestHaversine(unittest.TestCase):
    def test_zero_distance(self):
        self.assertEqual(haversine_distance(41.0082, 28.9784, 41.0082, 28.9784), 0.0)

    def test_one_degree_of_latitude(self):
        self.assertAlmostEqual(haversine_distance(0, 0, 1, 0), 111.19, places=1)

    def test_symmetric(self):
        a = haversine_distance(36.8969, 30.7133, 38.4237, 27.1428)
        b = haversine_distance(38.4237, 27.1428, 36.8969, 30.7133)
        self.assertAlmostEqual(a, b)


class TestFindNearestHub(unittest.TestCase):
    def test_point_near_antalya(self):
        match = find_nearest_hub(36.8625, 31.0556, Capability.MARINE)
        self.assertIsNotNone(match)
        self.assertEqual(match.hub.id, "antalya")
        self.assertAlmostEqual(match.distance_km, 30.7, delta=1.0)
        self.assertLess(match.distance_km, match.hub.radius_km)

    def test_point_on_hub_has_zero_distance(self):
        match = find_nearest_hub(39.9055, 41.2658, "ski")
        self.assertEqual(match.hub.id, "erzurum")
        self.assertEqual(match.distance_km, 0.0)

    def test_capability_filter(self):
        # central İstanbul is a marine hub but not a ski hub; Bursa is too far away
        self.assertIsNone(find_nearest_hub(41.0082, 28.9784, Capability.SKI))
        self.assertEqual(find_nearest_hub(41.0082, 28.9784, Capability.TRAFFIC).hub.id, "istanbul")

    def test_inland_point_has_no_marine_hub(self):
        self.assertIsNone(find_nearest_hub(39.9208, 32.8541, Capability.MARINE))

    def test_radius_is_inclusive(self):
        hub = Hub(id="h", name="H", coord=Coordinate(lat=0, lon=0), capabilities=frozenset({Capability.MARINE}),
                  radius_km=haversine_distance(0, 0, 0, 1))
        self.assertIsNotNone(find_nearest_hub(0, 1, Capability.MARINE, hubs=[hub]))

    def test_nearest_wins(self):
        near = Hub(id="near", name="Near", coord=Coordinate(lat=0, lon=0.1),
                   capabilities=frozenset({Capability.MARINE}), radius_km=100)
        far = Hub(id="far", name="Far", coord=Coordinate(lat=0, lon=0.5),
                  capabilities=frozenset({Capability.MARINE}), radius_km=100)
        self.assertEqual(find_nearest_hub(0, 0, Capability.MARINE, hubs=[far, near]).hub.id, "near")

    def test_deterministic(self):
        first = find_nearest_hub(38.3, 27.0, Capability.MARINE)
        self.assertEqual(first, find_nearest_hub(38.3, 27.0, Capability.MARINE))


class TestHubTable(unittest.TestCase):
    def test_nine_hubs(self):
        self.assertEqual(len(REGIONAL_HUBS), 9)
        self.assertEqual(get_hub_by_id("izmir").radius_km, 60)
        self.assertIsNone(get_hub_by_id("atlantis"))


if __name__ == "__main__":
    unittest.main()

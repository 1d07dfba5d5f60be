import unittest

from retro_chip8.devices.keypad import Keypad

class TestKeypad(unittest.TestCase):
    def setUp(self):
        self.keypad = Keypad()

    def test_update_and_query(self):
        self.keypad.update(0xA, True)
        self.assertTrue(self.keypad.is_key_pressed(0xA))
        self.keypad.update(0xA, False)
        self.assertFalse(self.keypad.is_key_pressed(0xA))

    def test_invalid_key(self):
        with self.assertRaises(ValueError):
            self.keypad.update(16, True)
        with self.assertRaises(ValueError):
            self.keypad.is_key_pressed(-1)

    def test_wait_is_satisfied_by_new_press(self):
        self.keypad.request_key_press(3)
        self.assertTrue(self.keypad.waiting)
        self.assertIsNone(self.keypad.take_key_press())
        self.keypad.update(0x7, True)
        self.assertEqual(self.keypad.take_key_press(), 0x7)
        self.assertFalse(self.keypad.waiting)

    def test_key_held_before_request_does_not_count(self):
        self.keypad.update(0x5, True)
        self.keypad.request_key_press(0)
        self.keypad.update(0x5, True)
        self.assertIsNone(self.keypad.take_key_press())
        self.keypad.update(0x5, False)
        self.keypad.update(0x5, True)
        self.assertEqual(self.keypad.take_key_press(), 0x5)

    def test_first_press_wins(self):
        self.keypad.request_key_press(0)
        self.keypad.update(0x1, True)
        self.keypad.update(0x2, True)
        self.assertEqual(self.keypad.pending_key, 0x1)

    def test_repeated_request_keeps_pending_key(self):
        self.keypad.request_key_press(4)
        self.keypad.update(0xC, True)
        self.keypad.request_key_press(4)
        self.assertEqual(self.keypad.take_key_press(), 0xC)

    def test_from_state_round_trip(self):
        self.keypad.update(0x2, True)
        self.keypad.request_key_press(9)
        rebuilt = Keypad.from_state(self.keypad.pressed_keys(), self.keypad.waiting,
                                    self.keypad.wait_register, self.keypad.pending_key)
        self.assertEqual(rebuilt.pressed_keys(), self.keypad.pressed_keys())
        self.assertTrue(rebuilt.waiting)
        self.assertEqual(rebuilt.wait_register, 9)

if __name__ == '__main__':
    unittest.main()

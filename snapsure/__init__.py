"""snapsure - LVM snapshot backups scanned with an integrity checker.

Takes copy-on-write snapshots of the configured logical volumes, then
mounts each snapshot read-only and runs the integrity scanner against it.
"""

__version__ = "0.1.0"

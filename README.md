# cantrace

`cantrace` is the model layer of a CAN bus tracing tool. It covers these parts:

- the configuration files the tool keeps in its data directory;
- the trace table;
- the list of offline log files;
- the online/offline measurement switch;
- the simulation network tree;
- the mapping of networks to hardware channels.

You drive the model from your own code. It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `cantrace.modes`

- `CanMessage` is a dataclass with the fields `timestamp` (in microseconds), `channel`, `can_id`, `dlc` and `data`.
- `start_online_mode()` and `start_offline_mode()` only log a debug message.
- `start_online_mode_data(text, log)` and `start_offline_mode_data(text, log)` log `text`. If a list is given as `log`, they also append an info frame to it. The info frame has channel 1, id `0xFFFFFFFF` and dlc 0. Its data is `b"\x02"` for online and `b"\x01"` for offline.

### `cantrace.configuration`

- `load_config(path)` reads `key=x,y` lines into a dict of `(x, y)` tuples, sorted by key. It skips empty lines, `#` comments, `active_tab=` lines and malformed lines.
- `save_config(path, positions)` writes one `key=x,y` line per block.
- `load_active_tab(path)` returns the first `active_tab=` value. It returns `None` if there is no such line or the file cannot be read.
- `save_active_tab(path, active_tab)` rewrites an existing file. It drops any old `active_tab=` line and appends the new one.
- `AutoSaveTimer(path, get_positions, get_active_tab, interval=1.0)` calls `tick()` on a background thread at each interval. Each tick runs both save functions and logs failures instead of raising them. Use `start()` and `stop()`, or use the timer as a context manager.

### `cantrace.trace`

- `TraceView(batch_size=1000)` turns `CanMessage` objects into `TraceRow` entries.
- `set_messages()` loads the first batch of rows.
- `load_more_messages()` loads the next batch.
- `on_scroll(value, maximum)` loads another batch once `value` reaches 80 % of `maximum`.
- Each row carries the wall-clock time, the delta to the previous row in milliseconds, the channel, the id, the dlc, the data and a running counter.
- `format_can_id(can_id)` gives text such as `0X123`.
- `format_data(data, dlc)` gives upper-case hex bytes separated by spaces. It shows at most `dlc` bytes and never more than 8.

### `cantrace.offline_files`

- `OfflineFileList(config_path)` holds the offline log files as `OfflineFile` records and stores them in an INI-style `[Files]` group.
- Only `.blf` and `.asc` files are accepted. `is_valid_file_type()` checks this.
- `add_file()` raises `DuplicateFileError` if the path is already in the list.
- `add_dropped()` adds every supported path and saves the list.
- `set_activated()`, `refresh()`, `remove_rows()` and `clear()` change the list and save it.

### `cantrace.bundle`

- `bundle_configs(output_path, positions, active_tab, data_dir)` writes a single file:
  - a `[MainWindow]` group holding the block positions and the active tab;
  - then every `*.cfg` file in `data_dir`, with each group renamed `[<file base name>_<group>]`.
- `split_bundle(path)` reverses that grouping and returns a dict of file contents.
- `write_split_configs(contents, data_dir)` writes each entry to `<name>.cfg`.
- `apply_bundle(path, data_dir)` runs `split_bundle` and then `write_split_configs`.
- `read_main_active_tab(path)` returns the active tab of the `[MainWindow]` group.
- `autosave_main(path, positions, active_tab)` writes the positions under a `[MainWindow]` header and appends the active tab.
- `clear_cfg_files(data_dir)` empties every `*.cfg` file in the directory.
- `ensure_cfg_suffix(file_name)` adds `.cfg` if the name does not already end with it.
- `TabSet` holds an ordered list of tab names. `switch_to(name)` makes that tab current and returns `True`, or returns `False` if there is no tab with that name.

### `cantrace.run`

- `RunButton(data_dir, log=None)` reads the `[Buttons]` flags from `MsetUp.cfg` using `read_mode_flags()`. Both flags default to true.
- `handle_run()` clears the log and starts one mode:
  - if online is set, it starts online mode, even when offline is also set;
  - otherwise it starts offline mode.
- It returns the `Mode` it started. If neither flag is set, it raises `ModeNotSelectedError`.
- The progress messages are collected in `RunButton.messages`.

### `cantrace.measurement`

`MeasurementSetup(config_path)` keeps the Online and Offline button states in the `[Buttons]` group of its config file.

- It creates the config file if it does not exist.
- `click_online()` and `click_offline()` make the two buttons exclusive and save their states.
- `block_positions()` returns the positions of the four blocks.
- `apply_block_positions()` moves the blocks to whole-pixel positions and calls every function in `position_listeners`.
- `folder_target_tab(tabs)` switches a `TabSet` to "Offline Mode".

### `cantrace.channel_config`

- `read_networks(path)` reads the active networks from a `SsetUp.cfg` tree. Each network is numbered within its bus type, for example `CAN1` and `CAN2`.
- `mode_enabled(msetup_path)` is `False` only when offline mode is selected and online mode is not.
- `load_channel_config(path)` reads `ChannelInfo` records from `ChMap.cfg`.
- `save_channel_config(path, infos)` writes them back to `ChMap.cfg`.

### `cantrace.channel_mapping`

`ChannelMapping(data_dir)` combines the network list with the mapping records.

- `load()` raises `FileNotFoundError` if `SsetUp.cfg` is missing.
- `save()` writes `ChMap.cfg` and calls every callback registered with `subscribe()`. `subscribe()` returns a function that removes the callback again.
- `set_active()` and `set_hardware()` change one network and save.
- `networks_by_type()` groups the networks by bus type.
- `next_can_number()` returns the next free `CAN<n>` number.
- `disabled_hardware(network, available)` lists the channels that another network already uses.
- `status(network)` returns `✓` for active with hardware, `!` for active without hardware and `-` for inactive.

### `cantrace.sim_tree`

- `TreeNode` is a node of the tree, with `add_child`, `find`, `remove_child` and `walk`.
- `save_tree()` and `load_tree()` map a tree to and from `/`-separated keys.
- `read_ini()` and `write_ini()` store those keys in INI groups.
- `unique_name()` appends ` (n)` to a name that is already taken.

### `cantrace.simulation`

`SimulationSetup(config_path)` holds the network tree and the network-active flag, and stores both in the `[SimulationSetup]` group.

- Adding networks:
  - `add_network(name, bus_type)` creates the bus-type group if needed and adds the fixed folders to the new network.
  - `add_child(group, name)` adds a network to an existing group.
- Activating networks: `activate_all()`, `deactivate_all()` and `toggle_active()` add or remove the ` (Inactive)` mark.
- Removing networks: `remove_all()` and `remove()`.
- `rename()` changes a network's name.
- Database files:
  - `add_databases()` adds files by absolute path and skips files already listed;
  - `check_all_databases()` returns the entries whose file is missing.
- `toggle_network_active()` flips the network-active flag.

## Example

```python
from cantrace.configuration import load_config, save_config
from cantrace.modes import CanMessage
from cantrace.trace import TraceView

save_config("MainW.cfg", {"traceBlock": (400.0, 115.0)})
print(load_config("MainW.cfg"))  # {'traceBlock': (400.0, 115.0)}

view = TraceView(batch_size=100)
view.set_messages([CanMessage(timestamp=1000, channel=1, can_id=0x123, dlc=2, data=bytes([1, 2]))])
print(view.rows[0].can_id, view.rows[0].data)  # 0X123 01 02
```

## What it does not do

- **No user interface and no command.** There are no windows, dialogs or command-line entry point.
- **No bus access.** It does not talk to CAN hardware or to any driver.
  - Online and offline mode only append an info frame to the log. They do not capture or replay traffic.
  - Log files in the offline list are tracked by path only. They are never opened.
- **No hardware discovery.** The list of available hardware channels must come from the caller, for example as the `available` argument of `ChannelMapping.disabled_hardware`.